from __future__ import annotations

import datetime as dt
from abc import ABC, abstractmethod
from typing import Any, cast

from sqlalchemy.orm import Session as DBSession

from ..core.clock import Clock, utcnow
from ..core.exceptions import PlayerNotFound
from ..models.db import Player as PlayerRow
from ..models.entities import Player


def to_player(row: PlayerRow) -> Player:
    return Player(
        id=int(cast(int, row.id)),
        name=cast(str, row.name),
        club_id=int(cast(int, row.club_id)),
        total_play_time=int(cast(int, row.total_play_time or 0)),
        last_played=cast(Any, row.last_played),
    )


class PlayerStore(ABC):
    """Interface for player persistence operations."""

    @abstractmethod
    def create_player(self, name: str, club_id: int) -> Player:
        ...

    @abstractmethod
    def get_player(self, player_id: int) -> Player | None:
        ...

    @abstractmethod
    def list_players(self, club_id: int) -> list[Player]:
        """Return a club's players ordered by name."""
        ...

    @abstractmethod
    def add_play_time(self, player_id: int, seconds: int, played_at: dt.datetime) -> Player:
        """Add closed interval seconds to the player's total play time."""
        ...


class SqlPlayerStore(PlayerStore):
    def __init__(self, db: DBSession, clock: Clock = utcnow) -> None:
        self._db = db
        self._clock = clock

    def create_player(self, name: str, club_id: int) -> Player:
        name = name.strip()
        if not name:
            raise ValueError("Player name is required")
        row = PlayerRow(name=name, club_id=club_id, total_play_time=0, created_at=self._clock())
        self._db.add(row)
        self._db.flush()
        return to_player(row)

    def get_player(self, player_id: int) -> Player | None:
        row = self._db.get(PlayerRow, player_id)
        return to_player(row) if row else None

    def list_players(self, club_id: int) -> list[Player]:
        rows = (
            self._db.query(PlayerRow)
            .filter(PlayerRow.club_id == club_id)
            .order_by(PlayerRow.name.asc(), PlayerRow.id.asc())
            .all()
        )
        return [to_player(r) for r in rows]

    def add_play_time(self, player_id: int, seconds: int, played_at: dt.datetime) -> Player:
        row = self._db.get(PlayerRow, player_id)
        if row is None:
            raise PlayerNotFound(player_id)
        row.total_play_time = cast(Any, int(cast(int, row.total_play_time or 0)) + int(seconds))
        row.last_played = cast(Any, played_at)
        self._db.flush()
        return to_player(row)
