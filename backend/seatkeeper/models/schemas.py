from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field


UserRole = Literal["admin", "club_owner", "dealer"]


class UserOut(BaseModel):
    id: int
    username: str
    role: UserRole
    full_name: str | None = None
    is_active: bool

    class Config:
        from_attributes = True


class UserCreateIn(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=4, max_length=128)
    role: UserRole = "dealer"
    full_name: str | None = Field(default=None, max_length=100)


class LoginIn(BaseModel):
    username: str
    password: str


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class ClubOut(BaseModel):
    id: int
    name: str
    owner_id: int
    address: str | None = None
    is_active: bool

    class Config:
        from_attributes = True


class ClubCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    owner_id: int
    address: str | None = None


class TableOut(BaseModel):
    id: int
    name: str
    club_id: int
    dealer_id: int | None = None
    max_seats: int
    is_active: bool

    class Config:
        from_attributes = True


class TableCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    club_id: int
    dealer_id: int | None = None
    max_seats: int | None = Field(default=None, ge=2, le=10)
    seats_closed: bool = False  # new seats start Closed instead of Open


class PlayerOut(BaseModel):
    id: int
    name: str
    club_id: int
    total_play_time: int
    last_played: dt.datetime | None = None

    class Config:
        from_attributes = True


class PlayerCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    club_id: int
    notes: str | None = None


class SeatOut(BaseModel):
    id: int
    table_id: int
    position: int
    status: str
    player_id: int | None = None
    player_name: str | None = None
    session_id: int | None = None
    time_started: dt.datetime | None = None
    time_elapsed: int = 0
    live_elapsed: int = 0  # time_elapsed plus the running interval while Playing
    version: int


class SeatStatusIn(BaseModel):
    # Plain string: unknown statuses are rejected by the transition rules, not by validation.
    status: str
    player_id: int | None = None
    new_player_name: str | None = Field(default=None, max_length=100)


class SessionCreateIn(BaseModel):
    table_id: int
    name: str | None = Field(default=None, max_length=100)


class SessionOut(BaseModel):
    id: int
    table_id: int
    dealer_id: int | None = None
    name: str
    is_active: bool
    start_time: dt.datetime
    end_time: dt.datetime | None = None
    total_time: int

    class Config:
        from_attributes = True


class TimeRecordOut(BaseModel):
    id: int
    player_id: int
    seat_id: int
    session_id: int | None = None
    start_time: dt.datetime
    end_time: dt.datetime | None = None
    duration: int

    class Config:
        from_attributes = True


class PlayerTimeOut(BaseModel):
    player_id: int
    name: str
    elapsed_seconds: int
    elapsed: str  # HH:MM:SS
    total_play_time: int
    records: list[TimeRecordOut] = []
