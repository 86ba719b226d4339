from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum


class SeatStatus(str, Enum):
    OPEN = "Open"
    PLAYING = "Playing"
    BREAK = "Break"
    BLOCKED = "Blocked"
    CLOSED = "Closed"


# Statuses in which a seat holds a player.
OCCUPIED_STATUSES = frozenset({SeatStatus.PLAYING, SeatStatus.BREAK, SeatStatus.BLOCKED})


@dataclass(frozen=True)
class Seat:
    id: int
    table_id: int
    position: int
    status: SeatStatus
    player_id: int | None = None
    session_id: int | None = None
    time_started: dt.datetime | None = None
    time_elapsed: int = 0
    version: int = 1


@dataclass(frozen=True)
class Player:
    id: int
    name: str
    club_id: int
    total_play_time: int = 0
    last_played: dt.datetime | None = None


@dataclass(frozen=True)
class TimeRecord:
    id: int
    player_id: int
    seat_id: int
    session_id: int | None
    start_time: dt.datetime
    end_time: dt.datetime | None
    duration: int

    @property
    def is_open(self) -> bool:
        return self.end_time is None
