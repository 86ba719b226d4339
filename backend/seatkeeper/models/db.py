from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from ..core.clock import utcnow

Base = declarative_base()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="dealer")  # admin | club_owner | dealer
    full_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    last_login = Column(DateTime, nullable=True)


class Club(Base):
    __tablename__ = "clubs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    owner = relationship("User")
    tables = relationship("Table", back_populates="club")
    players = relationship("Player", back_populates="club")


class Table(Base):
    __tablename__ = "tables"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    club_id = Column(Integer, ForeignKey("clubs.id"), nullable=False, index=True)
    dealer_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    max_seats = Column(Integer, nullable=False, default=9)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    club = relationship("Club", back_populates="tables")
    dealer = relationship("User")
    seats = relationship("TableSeat", back_populates="table", order_by="TableSeat.position")
    sessions = relationship("TableSession", back_populates="table")


class Player(Base):
    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    club_id = Column(Integer, ForeignKey("clubs.id"), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    total_play_time = Column(Integer, nullable=False, default=0)  # seconds
    last_played = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    club = relationship("Club", back_populates="players")


class TableSession(Base):
    __tablename__ = "table_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_id = Column(Integer, ForeignKey("tables.id"), nullable=False, index=True)
    dealer_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    start_time = Column(DateTime, nullable=False, default=utcnow)
    end_time = Column(DateTime, nullable=True)
    total_time = Column(Integer, nullable=False, default=0)  # seconds

    table = relationship("Table", back_populates="sessions")


class TableSeat(Base):
    __tablename__ = "table_seats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_id = Column(Integer, ForeignKey("tables.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, default="Open")  # Open|Playing|Break|Blocked|Closed
    player_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    session_id = Column(Integer, ForeignKey("table_sessions.id"), nullable=True)
    time_started = Column(DateTime, nullable=True)
    time_elapsed = Column(Integer, nullable=False, default=0)  # seconds
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    table = relationship("Table", back_populates="seats")
    player = relationship("Player")

    __table_args__ = (
        UniqueConstraint("table_id", "position", name="uq_table_seat_position"),
    )


class PlayerTimeRecord(Base):
    __tablename__ = "player_time_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=False, index=True)
    seat_id = Column(Integer, ForeignKey("table_seats.id"), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("table_sessions.id"), nullable=True, index=True)
    start_time = Column(DateTime, nullable=False, default=utcnow)
    end_time = Column(DateTime, nullable=True)
    duration = Column(Integer, nullable=False, default=0)  # seconds, set on close

    player = relationship("Player")

    __table_args__ = (
        Index("ix_time_record_open", "player_id", "seat_id", "end_time"),
    )
