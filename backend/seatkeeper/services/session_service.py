from __future__ import annotations

import logging
from typing import Any, cast

from sqlalchemy.orm import Session as DBSession

from ..core.clock import Clock, utcnow, whole_seconds
from ..core.db import storage_errors, transaction
from ..core.exceptions import SessionNotFound, TableNotFound
from ..models.db import Table, TableSeat, TableSession
from ..models.entities import SeatStatus
from .time_ledger import TimeLedger

logger = logging.getLogger(__name__)


class SessionService:
    """Table sessions: at most one active session per table."""

    def __init__(self, db: DBSession, clock: Clock = utcnow, ledger: TimeLedger | None = None) -> None:
        self._db = db
        self._clock = clock
        self._ledger = ledger or TimeLedger(db, clock)

    def get_active_session(self, table_id: int) -> TableSession | None:
        with storage_errors():
            return (
                self._db.query(TableSession)
                .filter(TableSession.table_id == table_id, TableSession.is_active.is_(True))
                .order_by(TableSession.start_time.desc())
                .first()
            )

    def get_session(self, session_id: int) -> TableSession:
        with storage_errors():
            s = self._db.get(TableSession, session_id)
        if s is None:
            raise SessionNotFound(session_id)
        return s

    def list_sessions(self, table_id: int) -> list[TableSession]:
        with storage_errors():
            return (
                self._db.query(TableSession)
                .filter(TableSession.table_id == table_id)
                .order_by(TableSession.start_time.desc())
                .all()
            )

    def _close(self, s: TableSession) -> None:
        """Stamp the session ended and detach its seats. Running time records stay open."""
        now = self._clock()
        s.is_active = cast(Any, False)
        s.end_time = cast(Any, now)
        s.total_time = cast(Any, whole_seconds(cast(Any, s.start_time), now))

        seats = self._db.query(TableSeat).filter(TableSeat.session_id == s.id).all()
        for seat in seats:
            seat.session_id = cast(Any, None)
            seat.version = cast(Any, int(cast(int, seat.version or 1)) + 1)
        self._db.flush()
        logger.info(f"Session {s.id} for table {s.table_id} ended after {s.total_time}s")

    def _carry_timing(self, seat: TableSeat, session_id: int) -> None:
        # Split the running interval at the session boundary; the seat keeps its time.
        player_id = int(cast(int, seat.player_id))
        seat_id = int(cast(int, seat.id))
        record = self._ledger.stop_timing(player_id, seat_id)
        if record is not None:
            seat.time_elapsed = cast(Any, int(cast(int, seat.time_elapsed or 0)) + record.duration)
        self._ledger.start_timing(player_id, seat_id, session_id)
        seat.time_started = cast(Any, self._clock())

    def start_session(self, table_id: int, name: str | None = None, dealer_id: int | None = None) -> TableSession:
        """
        Start a new session for a table.

        Any active session of the table is ended first. Seats of the table are
        attached to the new session. For Playing seats the running interval is
        closed into the seat's elapsed time and a new one opens under this session.
        """
        with storage_errors(), transaction(self._db):
            table = self._db.get(Table, table_id)
            if table is None:
                raise TableNotFound(table_id)

            active = (
                self._db.query(TableSession)
                .filter(TableSession.table_id == table_id, TableSession.is_active.is_(True))
                .all()
            )
            for prior in active:
                self._close(prior)

            now = self._clock()
            s = TableSession(
                table_id=table_id,
                dealer_id=dealer_id,
                name=(name or "").strip() or f"{table.name} {now:%Y-%m-%d %H:%M}",
                is_active=True,
                start_time=now,
                total_time=0,
            )
            self._db.add(s)
            self._db.flush()

            seats = self._db.query(TableSeat).filter(TableSeat.table_id == table_id).all()
            for seat in seats:
                seat.session_id = cast(Any, s.id)
                seat.version = cast(Any, int(cast(int, seat.version or 1)) + 1)
                if seat.status == SeatStatus.PLAYING.value and seat.player_id is not None:
                    self._carry_timing(seat, int(cast(int, s.id)))
            self._db.flush()

        logger.info(f"Session {s.id} started for table {table_id}")
        self._db.refresh(s)
        return s

    def end_session(self, session_id: int) -> TableSession:
        with storage_errors(), transaction(self._db):
            s = self._db.get(TableSession, session_id)
            if s is None:
                raise SessionNotFound(session_id)
            if s.is_active:
                self._close(s)
        self._db.refresh(s)
        return s
