from __future__ import annotations

from typing import Any, cast

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DBSession

from ..core.clock import Clock
from ..core.deps import get_clock, get_current_user, get_db, require_roles, require_table_access
from ..core.exceptions import TableNotFound
from ..models.db import Table, User
from ..models.schemas import SessionCreateIn, SessionOut
from ..services.session_service import SessionService

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

_STAFF = ("admin", "club_owner", "dealer")


def _table_for(db: DBSession, user: User, table_id: int) -> Table:
    table = db.get(Table, table_id)
    if table is None:
        raise TableNotFound(table_id)
    require_table_access(user, table)
    return table


@router.get(
    "/open",
    response_model=SessionOut | None,
    dependencies=[Depends(require_roles(*_STAFF))],
)
def get_open_session(
    table_id: int = Query(...),
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: User = Depends(get_current_user),
):
    _table_for(db, user, table_id)
    s = SessionService(db, clock).get_active_session(table_id)
    return SessionOut.model_validate(s) if s else None


@router.get(
    "",
    response_model=list[SessionOut],
    dependencies=[Depends(require_roles(*_STAFF))],
)
def list_sessions(
    table_id: int = Query(...),
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: User = Depends(get_current_user),
):
    _table_for(db, user, table_id)
    return [SessionOut.model_validate(s) for s in SessionService(db, clock).list_sessions(table_id)]


@router.post(
    "",
    response_model=SessionOut,
    dependencies=[Depends(require_roles(*_STAFF))],
)
def start_session(
    payload: SessionCreateIn,
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: User = Depends(get_current_user),
):
    _table_for(db, user, payload.table_id)
    dealer_id = cast(Any, user.id) if cast(str, user.role) == "dealer" else None
    s = SessionService(db, clock).start_session(payload.table_id, payload.name, dealer_id)
    return SessionOut.model_validate(s)


@router.post(
    "/{session_id}/end",
    response_model=SessionOut,
    dependencies=[Depends(require_roles(*_STAFF))],
)
def end_session(
    session_id: int,
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: User = Depends(get_current_user),
):
    service = SessionService(db, clock)
    s = service.get_session(session_id)
    _table_for(db, user, cast(int, s.table_id))
    return SessionOut.model_validate(service.end_session(session_id))
