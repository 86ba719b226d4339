from __future__ import annotations

from typing import cast

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DBSession

from ..core.clock import Clock
from ..core.deps import get_clock, get_current_user, get_db, require_roles, require_table_access
from ..core.exceptions import TableNotFound
from ..models.db import Player, Table, User
from ..models.entities import Seat
from ..models.schemas import SeatOut, SeatStatusIn
from ..services.seat_service import SeatService, live_elapsed
from ..services.transition_policy import TransitionContext

router = APIRouter(prefix="/api", tags=["seats"])

_STAFF = ("admin", "club_owner", "dealer")


def _seat_out(db: DBSession, seat: Seat, clock: Clock) -> SeatOut:
    player_name = None
    if seat.player_id is not None:
        p = db.get(Player, seat.player_id)
        player_name = cast(str, p.name) if p else None
    return SeatOut(
        id=seat.id,
        table_id=seat.table_id,
        position=seat.position,
        status=seat.status.value,
        player_id=seat.player_id,
        player_name=player_name,
        session_id=seat.session_id,
        time_started=seat.time_started,
        time_elapsed=seat.time_elapsed,
        live_elapsed=live_elapsed(seat, clock()),
        version=seat.version,
    )


def _table_for(db: DBSession, user: User, table_id: int) -> Table:
    table = db.get(Table, table_id)
    if table is None:
        raise TableNotFound(table_id)
    require_table_access(user, table)
    return table


@router.get(
    "/tables/{table_id}/seats",
    response_model=list[SeatOut],
    dependencies=[Depends(require_roles(*_STAFF))],
)
def list_seats(
    table_id: int,
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: User = Depends(get_current_user),
):
    _table_for(db, user, table_id)
    service = SeatService(db, clock)
    return [_seat_out(db, s, clock) for s in service.list_seats(table_id)]


@router.get(
    "/seats/{seat_id}",
    response_model=SeatOut,
    dependencies=[Depends(require_roles(*_STAFF))],
)
def get_seat(
    seat_id: int,
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: User = Depends(get_current_user),
):
    service = SeatService(db, clock)
    seat = service.get_seat(seat_id)
    _table_for(db, user, seat.table_id)
    return _seat_out(db, seat, clock)


@router.patch(
    "/seats/{seat_id}",
    response_model=SeatOut,
    dependencies=[Depends(require_roles(*_STAFF))],
)
def change_seat_status(
    seat_id: int,
    payload: SeatStatusIn,
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: User = Depends(get_current_user),
):
    service = SeatService(db, clock)
    seat = service.get_seat(seat_id)
    table = _table_for(db, user, seat.table_id)

    context = TransitionContext(
        club_id=int(cast(int, table.club_id)),
        selected_player_id=payload.player_id,
        new_player_name=payload.new_player_name,
    )
    updated = service.change_seat_status(seat_id, payload.status, context)
    return _seat_out(db, updated, clock)
