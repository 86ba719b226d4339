from __future__ import annotations

from typing import Any, cast

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session as DBSession

from ..core.clock import Clock, format_seconds
from ..core.db import storage_errors, transaction
from ..core.deps import get_clock, get_current_user, get_db, require_club_access, require_roles
from ..core.exceptions import NotFound, PlayerNotFound
from ..models.db import Club, Player as PlayerRow, User
from ..models.schemas import PlayerCreateIn, PlayerOut, PlayerTimeOut, TimeRecordOut
from ..services.player_store import SqlPlayerStore
from ..services.time_ledger import TimeLedger

router = APIRouter(prefix="/api/players", tags=["players"])

_STAFF = ("admin", "club_owner", "dealer")


def _club_for(db: DBSession, user: User, club_id: int) -> Club:
    club = db.get(Club, club_id)
    if club is None:
        raise NotFound(f"Club {club_id} not found")
    require_club_access(user, club)
    return club


@router.get("", response_model=list[PlayerOut], dependencies=[Depends(require_roles(*_STAFF))])
def list_players(
    club_id: int = Query(...),
    db: DBSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _club_for(db, user, club_id)
    with storage_errors():
        players = SqlPlayerStore(db).list_players(club_id)
    return [PlayerOut.model_validate(p, from_attributes=True) for p in players]


@router.post("", response_model=PlayerOut, dependencies=[Depends(require_roles(*_STAFF))])
def create_player(
    payload: PlayerCreateIn,
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: User = Depends(get_current_user),
):
    _club_for(db, user, payload.club_id)
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Valid player name is required")

    with storage_errors(), transaction(db):
        player = SqlPlayerStore(db, clock).create_player(name, payload.club_id)
        if payload.notes:
            row = db.get(PlayerRow, player.id)
            row.notes = cast(Any, payload.notes)
    return PlayerOut.model_validate(player, from_attributes=True)


@router.get("/{player_id}/time", response_model=PlayerTimeOut, dependencies=[Depends(require_roles(*_STAFF))])
def player_time(
    player_id: int,
    session_id: int | None = Query(default=None),
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: User = Depends(get_current_user),
):
    store = SqlPlayerStore(db, clock)
    with storage_errors():
        player = store.get_player(player_id)
        if player is None:
            raise PlayerNotFound(player_id)
        _club_for(db, user, player.club_id)

        ledger = TimeLedger(db, clock, store)
        elapsed = ledger.get_elapsed_seconds(player_id, session_id)
        records = ledger.records_for_player(player_id, session_id)

    return PlayerTimeOut(
        player_id=player.id,
        name=player.name,
        elapsed_seconds=elapsed,
        elapsed=format_seconds(elapsed),
        total_play_time=player.total_play_time,
        records=[TimeRecordOut.model_validate(r, from_attributes=True) for r in records],
    )
