"""Seat persistence boundary.

Stores are swappable and return domain models; no business rules live here.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, cast

from sqlalchemy import update
from sqlalchemy.orm import Session as DBSession

from ..core.clock import Clock, utcnow
from ..core.exceptions import Conflict, SeatNotFound
from ..models.db import TableSeat
from ..models.entities import Seat, SeatStatus

# Columns a caller may patch through write_seat().
WRITABLE_FIELDS = frozenset({"status", "player_id", "session_id", "time_started", "time_elapsed"})


def to_seat(row: TableSeat) -> Seat:
    return Seat(
        id=int(cast(int, row.id)),
        table_id=int(cast(int, row.table_id)),
        position=int(cast(int, row.position)),
        status=SeatStatus(cast(str, row.status)),
        player_id=cast(Any, row.player_id),
        session_id=cast(Any, row.session_id),
        time_started=cast(Any, row.time_started),
        time_elapsed=int(cast(int, row.time_elapsed or 0)),
        version=int(cast(int, row.version or 1)),
    )


class SeatRegistry(ABC):
    """Interface for seat persistence operations."""

    @abstractmethod
    def get_seats_by_table(self, table_id: int) -> list[Seat]:
        """Return all seats of a table ordered by position."""
        ...

    @abstractmethod
    def get_seat(self, seat_id: int) -> Seat | None:
        """Return a seat by ID, or None if not found."""
        ...

    @abstractmethod
    def create_seats_for_table(
        self, table_id: int, max_seats: int, initial_status: SeatStatus = SeatStatus.OPEN
    ) -> list[Seat]:
        """Ensure one seat per position 1..max_seats exists; existing seats are left alone."""
        ...

    @abstractmethod
    def write_seat(self, seat_id: int, patch: dict[str, Any], expected_version: int | None = None) -> Seat:
        """Apply a patch and bump the version.

        Raises:
            SeatNotFound: If the seat does not exist.
            Conflict: If expected_version no longer matches the stored row.
        """
        ...


class SqlSeatRegistry(SeatRegistry):
    """SQLAlchemy-backed seat registry. Flushes only; the caller owns the transaction."""

    def __init__(self, db: DBSession, clock: Clock = utcnow) -> None:
        self._db = db
        self._clock = clock

    def get_seats_by_table(self, table_id: int) -> list[Seat]:
        rows = (
            self._db.query(TableSeat)
            .filter(TableSeat.table_id == table_id)
            .order_by(TableSeat.position.asc())
            .all()
        )
        return [to_seat(r) for r in rows]

    def get_seat(self, seat_id: int) -> Seat | None:
        row = self._db.get(TableSeat, seat_id)
        return to_seat(row) if row else None

    def create_seats_for_table(
        self, table_id: int, max_seats: int, initial_status: SeatStatus = SeatStatus.OPEN
    ) -> list[Seat]:
        if initial_status not in (SeatStatus.OPEN, SeatStatus.CLOSED):
            raise ValueError("New seats start Open or Closed")

        existing = {
            int(cast(int, p))
            for (p,) in self._db.query(TableSeat.position).filter(TableSeat.table_id == table_id).all()
        }
        for position in range(1, max_seats + 1):
            if position in existing:
                continue
            self._db.add(
                TableSeat(
                    table_id=table_id,
                    position=position,
                    status=initial_status.value,
                    player_id=None,
                    time_elapsed=0,
                    version=1,
                    updated_at=self._clock(),
                )
            )
        self._db.flush()
        return self.get_seats_by_table(table_id)

    def write_seat(self, seat_id: int, patch: dict[str, Any], expected_version: int | None = None) -> Seat:
        unknown = set(patch) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot write seat fields: {sorted(unknown)}")

        values = dict(patch)
        if isinstance(values.get("status"), SeatStatus):
            values["status"] = values["status"].value
        values["version"] = TableSeat.version + 1
        values["updated_at"] = self._clock()

        stmt = update(TableSeat).where(TableSeat.id == seat_id)
        if expected_version is not None:
            stmt = stmt.where(TableSeat.version == expected_version)
        result = self._db.execute(stmt.values(**values).execution_options(synchronize_session=False))

        if result.rowcount == 0:
            if self._db.get(TableSeat, seat_id) is None:
                raise SeatNotFound(seat_id)
            raise Conflict()

        row = self._db.get(TableSeat, seat_id)
        self._db.refresh(row)
        return to_seat(row)
