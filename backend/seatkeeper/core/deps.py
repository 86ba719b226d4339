from __future__ import annotations

from typing import Any, Callable, cast

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session as DBSession

from .clock import Clock, utcnow
from .db import SessionLocal
from .exceptions import ErrorMessages
from .security import decode_token
from ..models.db import Club, Table, User


bearer = HTTPBearer(auto_error=False)


def _as_bool(v: Any) -> bool:
    return bool(cast(bool, v))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_clock() -> Clock:
    return utcnow


def get_current_user(
    db: DBSession = Depends(get_db),
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> User:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    payload = decode_token(creds.credentials)

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.get(User, user_id)
    if user is None or not _as_bool(user.is_active):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return user


def require_roles(*roles: str) -> Callable[[User], User]:
    allowed = set(roles)

    def _dep(user: User = Depends(get_current_user)) -> User:
        role = cast(str, user.role)
        if role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return _dep


def require_club_access(user: User, club: Club) -> None:
    role = cast(str, user.role)
    if role == "admin":
        return
    if role == "club_owner" and cast(int, club.owner_id) == cast(int, user.id):
        return
    if role == "dealer" and any(cast(int, t.dealer_id) == cast(int, user.id) for t in club.tables):
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ErrorMessages.FORBIDDEN_FOR_CLUB)


def require_table_access(user: User, table: Table) -> None:
    role = cast(str, user.role)
    if role == "admin":
        return
    if role == "club_owner" and cast(int, table.club.owner_id) == cast(int, user.id):
        return
    if role == "dealer":
        if table.dealer_id is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ErrorMessages.NO_TABLE_ASSIGNED)
        if cast(int, table.dealer_id) == cast(int, user.id):
            return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ErrorMessages.FORBIDDEN_FOR_TABLE)
