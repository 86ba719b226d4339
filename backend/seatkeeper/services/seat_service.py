"""
Seat service: the single entry point for changing a seat's status.

Loads the seat, asks the transition policy for a decision, creates a new
player when the dealer typed one in, runs the ledger action and writes the
seat guarded by its version, all inside one transaction. A rejected or failed
change leaves nothing behind.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any, cast

from sqlalchemy.orm import Session as DBSession

from ..core.clock import Clock, utcnow, whole_seconds
from ..core.db import storage_errors, transaction
from ..core.exceptions import (
    InvalidTransition,
    PlayerNotFound,
    PlayerRequired,
    SeatNotFound,
    TableNotFound,
)
from ..models.db import Table, TableSession
from ..models.entities import Seat, SeatStatus
from .player_store import PlayerStore, SqlPlayerStore
from .seat_registry import SeatRegistry, SqlSeatRegistry
from .time_ledger import TimeLedger
from .transition_policy import (
    Accepted,
    RejectionReason,
    Rejected,
    StartTiming,
    StopTiming,
    SwitchTiming,
    TransitionContext,
    evaluate_transition,
)

logger = logging.getLogger(__name__)

_REJECTIONS = {
    RejectionReason.INVALID_TRANSITION: InvalidTransition,
    RejectionReason.PLAYER_REQUIRED: PlayerRequired,
}


def live_elapsed(seat: Seat, now: dt.datetime) -> int:
    """Seconds the current occupant has played on this seat, including the running interval."""
    if seat.status == SeatStatus.PLAYING and seat.time_started is not None:
        return seat.time_elapsed + whole_seconds(seat.time_started, now)
    return seat.time_elapsed


class SeatService:
    def __init__(
        self,
        db: DBSession,
        clock: Clock = utcnow,
        registry: SeatRegistry | None = None,
        players: PlayerStore | None = None,
        ledger: TimeLedger | None = None,
    ) -> None:
        self._db = db
        self._clock = clock
        self._registry = registry or SqlSeatRegistry(db, clock)
        self._players = players or SqlPlayerStore(db, clock)
        self._ledger = ledger or TimeLedger(db, clock, self._players)

    @property
    def ledger(self) -> TimeLedger:
        return self._ledger

    def get_seat(self, seat_id: int) -> Seat:
        with storage_errors():
            seat = self._registry.get_seat(seat_id)
        if seat is None:
            raise SeatNotFound(seat_id)
        return seat

    def list_seats(self, table_id: int) -> list[Seat]:
        with storage_errors():
            if self._db.get(Table, table_id) is None:
                raise TableNotFound(table_id)
            return self._registry.get_seats_by_table(table_id)

    def club_for_seat(self, seat: Seat) -> int:
        table = self._db.get(Table, seat.table_id)
        if table is None:
            raise TableNotFound(seat.table_id)
        return int(cast(int, table.club_id))

    def change_seat_status(
        self,
        seat_id: int,
        target_status: SeatStatus | str,
        context: TransitionContext | None = None,
    ) -> Seat:
        """
        Change a seat's status and keep player timing in step with it.

        Raises:
            SeatNotFound: If the seat does not exist.
            PlayerNotFound: If the selected player does not exist in the club.
            InvalidTransition: If the target is unknown or not reachable.
            PlayerRequired: If the target needs a player and none was supplied.
            Conflict: If another request changed the seat meanwhile.
            StorageTimeout, StorageError: If persistence fails; nothing is committed.
        """
        context = context or TransitionContext()
        with storage_errors(), transaction(self._db):
            seat = self._registry.get_seat(seat_id)
            if seat is None:
                raise SeatNotFound(seat_id)

            decision = evaluate_transition(seat.status, seat.player_id, target_status, context)
            if isinstance(decision, Rejected):
                logger.warning(f"Seat {seat_id}: {decision.message}")
                raise _REJECTIONS[decision.reason](decision.message)

            decision = self._resolve_player(seat, decision, context)
            patch = self._apply_ledger(seat, decision)
            updated = self._registry.write_seat(seat_id, patch, expected_version=seat.version)

        logger.info(
            f"Seat {seat_id}: {seat.status.value} -> {updated.status.value} "
            f"(player {seat.player_id} -> {updated.player_id})"
        )
        return updated

    def _resolve_player(self, seat: Seat, decision: Accepted, context: TransitionContext) -> Accepted:
        if decision.creates_player:
            player = self._players.create_player(cast(str, decision.new_player_name), cast(int, context.club_id))
            logger.info(f"Created player {player.id} '{player.name}' in club {player.club_id}")
            return decision.with_player(player.id)

        if decision.player_id is not None and decision.player_id != seat.player_id:
            player = self._players.get_player(decision.player_id)
            if player is None or (context.club_id is not None and player.club_id != context.club_id):
                raise PlayerNotFound(decision.player_id)
        return decision

    def _active_session_id(self, table_id: int) -> int | None:
        session = (
            self._db.query(TableSession)
            .filter(TableSession.table_id == table_id, TableSession.is_active.is_(True))
            .order_by(TableSession.start_time.desc())
            .first()
        )
        return int(cast(int, session.id)) if session else None

    def _apply_ledger(self, seat: Seat, decision: Accepted) -> dict[str, Any]:
        patch: dict[str, Any] = {"status": decision.status, "player_id": decision.player_id}
        elapsed = seat.time_elapsed
        action = decision.ledger_action

        if isinstance(action, (StopTiming, SwitchTiming)):
            old_player_id = action.player_id if isinstance(action, StopTiming) else action.old_player_id
            record = self._ledger.stop_timing(old_player_id, seat.id)
            if record is not None:
                elapsed += record.duration

        if decision.player_id != seat.player_id:
            elapsed = 0

        if isinstance(action, (StartTiming, SwitchTiming)):
            player_id = action.player_id if isinstance(action, StartTiming) else action.new_player_id
            session_id = self._active_session_id(seat.table_id)
            self._ledger.start_timing(cast(int, player_id), seat.id, session_id)
            patch["time_started"] = self._clock()
            patch["session_id"] = session_id

        patch["time_elapsed"] = elapsed
        return patch
