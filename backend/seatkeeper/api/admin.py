from __future__ import annotations

from typing import Any, cast

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session as DBSession

from ..core.clock import Clock
from ..core.config import settings
from ..core.db import storage_errors, transaction
from ..core.deps import get_clock, get_current_user, get_db, require_club_access, require_roles
from ..core.exceptions import NotFound
from ..core.security import get_password_hash
from ..models.db import Club, Table, User
from ..models.entities import SeatStatus
from ..models.schemas import (
    ClubCreateIn,
    ClubOut,
    TableCreateIn,
    TableOut,
    UserCreateIn,
    UserOut,
)
from ..services.seat_registry import SqlSeatRegistry

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _normalize_username(v: str) -> str:
    return v.strip()


def _normalize_name(v: str) -> str:
    return v.strip()


@router.get("/clubs", response_model=list[ClubOut], dependencies=[Depends(require_roles("admin", "club_owner"))])
def list_clubs(db: DBSession = Depends(get_db), user: User = Depends(get_current_user)):
    q = db.query(Club)
    if cast(str, user.role) != "admin":
        q = q.filter(Club.owner_id == user.id)
    return [ClubOut.model_validate(c) for c in q.order_by(Club.id.asc()).all()]


@router.post("/clubs", response_model=ClubOut, dependencies=[Depends(require_roles("admin"))])
def create_club(payload: ClubCreateIn, db: DBSession = Depends(get_db), clock: Clock = Depends(get_clock)) -> ClubOut:
    name = _normalize_name(payload.name)
    if not name:
        raise HTTPException(status_code=400, detail="Club name is required")

    owner = db.get(User, payload.owner_id)
    if owner is None or cast(str, owner.role) != "club_owner":
        raise HTTPException(status_code=400, detail="Club owner must be a club_owner user")

    with storage_errors(), transaction(db):
        c = Club(name=name, owner_id=payload.owner_id, address=payload.address, is_active=True, created_at=clock())
        db.add(c)
    db.refresh(c)
    return ClubOut.model_validate(c)


@router.get("/tables", response_model=list[TableOut], dependencies=[Depends(require_roles("admin", "club_owner", "dealer"))])
def list_tables(
    club_id: int | None = Query(default=None),
    db: DBSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    role = cast(str, user.role)
    q = db.query(Table)
    if club_id is not None:
        q = q.filter(Table.club_id == club_id)
    if role == "club_owner":
        q = q.join(Club, Club.id == Table.club_id).filter(Club.owner_id == user.id)
    elif role == "dealer":
        q = q.filter(Table.dealer_id == user.id)
    return [TableOut.model_validate(t) for t in q.order_by(Table.id.asc()).all()]


@router.post("/tables", response_model=TableOut, dependencies=[Depends(require_roles("admin", "club_owner"))])
def create_table(
    payload: TableCreateIn,
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: User = Depends(get_current_user),
) -> TableOut:
    club = db.get(Club, payload.club_id)
    if club is None:
        raise NotFound(f"Club {payload.club_id} not found")
    require_club_access(user, club)

    name = _normalize_name(payload.name)
    if not name:
        raise HTTPException(status_code=400, detail="Table name is required")

    if payload.dealer_id is not None:
        dealer = db.get(User, payload.dealer_id)
        if dealer is None or cast(str, dealer.role) != "dealer":
            raise HTTPException(status_code=400, detail="dealer_id must reference a dealer user")

    max_seats = payload.max_seats or settings.DEFAULT_MAX_SEATS
    initial = SeatStatus.CLOSED if payload.seats_closed else SeatStatus.OPEN

    with storage_errors(), transaction(db):
        t = Table(
            name=name,
            club_id=payload.club_id,
            dealer_id=payload.dealer_id,
            max_seats=max_seats,
            is_active=True,
            created_at=clock(),
        )
        db.add(t)
        db.flush()
        SqlSeatRegistry(db, clock).create_seats_for_table(cast(int, t.id), max_seats, initial)

    db.refresh(t)
    return TableOut.model_validate(t)


@router.get("/users", response_model=list[UserOut], dependencies=[Depends(require_roles("admin", "club_owner"))])
def list_users(db: DBSession = Depends(get_db), current_user: User = Depends(get_current_user)) -> list[UserOut]:
    """
    List users based on role:
    - admin: sees all users
    - club_owner: sees only dealers
    """
    q = db.query(User)
    if cast(str, current_user.role) != "admin":
        q = q.filter(User.role == "dealer")
    return [UserOut.model_validate(u) for u in q.order_by(User.id.asc()).all()]


@router.post("/users", response_model=UserOut, dependencies=[Depends(require_roles("admin", "club_owner"))])
def create_user(
    payload: UserCreateIn,
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(get_current_user),
) -> UserOut:
    """
    Create user based on role:
    - admin: can create any role
    - club_owner: can only create dealers
    """
    username = _normalize_username(payload.username)
    if not username:
        raise HTTPException(status_code=400, detail="Username is required")

    if db.query(User).filter(User.username == username).first():
        raise HTTPException(status_code=400, detail="Username already exists")

    if cast(str, current_user.role) == "club_owner" and payload.role != "dealer":
        raise HTTPException(status_code=403, detail="Club owner can only create dealer users")

    with storage_errors(), transaction(db):
        u = User(
            username=username,
            password_hash=get_password_hash(payload.password),
            role=cast(Any, payload.role),
            full_name=payload.full_name,
            is_active=True,
            created_at=clock(),
        )
        db.add(u)
    db.refresh(u)
    return UserOut.model_validate(u)
