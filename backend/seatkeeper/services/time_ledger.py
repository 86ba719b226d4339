"""
Per-player play time accounting.

Each continuous Playing interval on a seat is one PlayerTimeRecord. Starting
is idempotent per player+seat; stopping closes the open record, stores its
whole-second duration and adds it to the player's total play time.
"""
from __future__ import annotations

import logging
from typing import Any, cast

from sqlalchemy.orm import Session as DBSession

from ..core.clock import Clock, utcnow, whole_seconds
from ..models.db import PlayerTimeRecord
from ..models.entities import TimeRecord
from .player_store import PlayerStore, SqlPlayerStore

logger = logging.getLogger(__name__)


def to_time_record(row: PlayerTimeRecord) -> TimeRecord:
    return TimeRecord(
        id=int(cast(int, row.id)),
        player_id=int(cast(int, row.player_id)),
        seat_id=int(cast(int, row.seat_id)),
        session_id=cast(Any, row.session_id),
        start_time=cast(Any, row.start_time),
        end_time=cast(Any, row.end_time),
        duration=int(cast(int, row.duration or 0)),
    )


class TimeLedger:
    def __init__(self, db: DBSession, clock: Clock = utcnow, players: PlayerStore | None = None) -> None:
        self._db = db
        self._clock = clock
        self._players = players or SqlPlayerStore(db, clock)

    def _open_row(self, player_id: int, seat_id: int) -> PlayerTimeRecord | None:
        return (
            self._db.query(PlayerTimeRecord)
            .filter(
                PlayerTimeRecord.player_id == player_id,
                PlayerTimeRecord.seat_id == seat_id,
                PlayerTimeRecord.end_time.is_(None),
            )
            .order_by(PlayerTimeRecord.id.desc())
            .first()
        )

    def start_timing(self, player_id: int, seat_id: int, session_id: int | None = None) -> TimeRecord:
        existing = self._open_row(player_id, seat_id)
        if existing is not None:
            return to_time_record(existing)

        row = PlayerTimeRecord(
            player_id=player_id,
            seat_id=seat_id,
            session_id=session_id,
            start_time=self._clock(),
            end_time=None,
            duration=0,
        )
        self._db.add(row)
        self._db.flush()
        logger.info(f"Timing started for player {player_id} on seat {seat_id}")
        return to_time_record(row)

    def stop_timing(self, player_id: int, seat_id: int) -> TimeRecord | None:
        row = self._open_row(player_id, seat_id)
        if row is None:
            logger.debug(f"No open time record for player {player_id} on seat {seat_id}")
            return None

        now = self._clock()
        duration = whole_seconds(cast(Any, row.start_time), now)
        row.end_time = cast(Any, now)
        row.duration = cast(Any, duration)
        self._db.flush()
        self._players.add_play_time(player_id, duration, now)
        logger.info(f"Timing stopped for player {player_id} on seat {seat_id} after {duration}s")
        return to_time_record(row)

    def records_for_player(self, player_id: int, session_id: int | None = None) -> list[TimeRecord]:
        q = self._db.query(PlayerTimeRecord).filter(PlayerTimeRecord.player_id == player_id)
        if session_id is not None:
            q = q.filter(PlayerTimeRecord.session_id == session_id)
        return [to_time_record(r) for r in q.order_by(PlayerTimeRecord.start_time.asc(), PlayerTimeRecord.id.asc())]

    def get_elapsed_seconds(self, player_id: int, session_id: int | None = None) -> int:
        """Closed durations plus the running part of any open record. Read only."""
        now = self._clock()
        total = 0
        for record in self.records_for_player(player_id, session_id):
            if record.is_open:
                total += whole_seconds(record.start_time, now)
            else:
                total += record.duration
        return total
