"""Tests for SeatService: status changes with play time kept in step.

Run with: pytest backend/tests/test_seat_service.py -v
"""

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from seatkeeper.core.exceptions import (
    Conflict,
    InvalidTransition,
    PlayerNotFound,
    PlayerRequired,
    SeatNotFound,
    StorageError,
    StorageTimeout,
)
from seatkeeper.models.db import Club, Player, PlayerTimeRecord, TableSeat
from seatkeeper.models.entities import OCCUPIED_STATUSES, SeatStatus
from seatkeeper.services.seat_registry import SqlSeatRegistry
from seatkeeper.services.seat_service import SeatService, live_elapsed
from seatkeeper.services.transition_policy import TransitionContext


@pytest.fixture
def service(db, clock):
    return SeatService(db, clock)


@pytest.fixture
def seat(seeded):
    return seeded.seats[2]


@pytest.fixture
def player_id(db, seeded):
    p = Player(name="Bo", club_id=seeded.club_id, total_play_time=0)
    db.add(p)
    db.commit()
    return p.id


def _ctx(seeded, **kwargs):
    return TransitionContext(club_id=seeded.club_id, **kwargs)


def _assert_occupancy(seat):
    assert (seat.player_id is not None) == (seat.status in OCCUPIED_STATUSES)


class TestSeatLifecycle:
    def test_new_player_plays_pauses_resumes_and_leaves(self, service, db, seeded, seat, clock):
        playing = service.change_seat_status(seat.id, "Playing", _ctx(seeded, new_player_name="Ana"))
        assert playing.status == SeatStatus.PLAYING
        assert playing.time_started == clock()
        _assert_occupancy(playing)

        ana = db.query(Player).filter(Player.name == "Ana").one()
        assert playing.player_id == ana.id
        assert ana.club_id == seeded.club_id

        clock.advance(10)
        paused = service.change_seat_status(seat.id, "Break", _ctx(seeded))
        assert paused.status == SeatStatus.BREAK
        assert paused.player_id == ana.id
        assert paused.time_elapsed == 10
        _assert_occupancy(paused)

        records = service.ledger.records_for_player(ana.id)
        assert [r.duration for r in records] == [10]

        clock.advance(300)
        resumed = service.change_seat_status(seat.id, "Playing", _ctx(seeded))
        assert resumed.player_id == ana.id
        assert resumed.time_started == clock()
        assert len(service.ledger.records_for_player(ana.id)) == 2

        clock.advance(25)
        assert live_elapsed(resumed, clock()) == 35

        vacated = service.change_seat_status(seat.id, "Open", _ctx(seeded))
        assert vacated.status == SeatStatus.OPEN
        assert vacated.player_id is None
        assert vacated.time_elapsed == 0
        _assert_occupancy(vacated)

        assert service.ledger.get_elapsed_seconds(ana.id) == 35
        db.expire_all()
        assert db.get(Player, ana.id).total_play_time == 35
        assert db.query(PlayerTimeRecord).filter(PlayerTimeRecord.end_time.is_(None)).count() == 0

    def test_closed_seat_must_open_before_play(self, service, seeded, seat, player_id):
        service.change_seat_status(seat.id, SeatStatus.CLOSED)
        with pytest.raises(InvalidTransition):
            service.change_seat_status(seat.id, "Playing", _ctx(seeded, selected_player_id=player_id))
        opened = service.change_seat_status(seat.id, "Open")
        assert opened.status == SeatStatus.OPEN

    def test_resubmitting_playing_keeps_the_running_interval(self, service, seeded, seat, player_id, clock):
        first = service.change_seat_status(seat.id, "Playing", _ctx(seeded, selected_player_id=player_id))
        clock.advance(7)
        again = service.change_seat_status(seat.id, "Playing", _ctx(seeded, selected_player_id=player_id))
        assert again.time_started == first.time_started
        assert again.version == first.version + 1
        assert len(service.ledger.records_for_player(player_id)) == 1

    def test_switching_occupant_closes_one_record(self, service, db, seeded, seat, player_id, clock):
        service.change_seat_status(seat.id, "Playing", _ctx(seeded, selected_player_id=player_id))
        clock.advance(42)
        switched = service.change_seat_status(seat.id, "Playing", _ctx(seeded, new_player_name="Cy"))

        cy = db.query(Player).filter(Player.name == "Cy").one()
        assert switched.player_id == cy.id
        assert switched.time_elapsed == 0
        assert [r.duration for r in service.ledger.records_for_player(player_id)] == [42]
        assert [r.is_open for r in service.ledger.records_for_player(cy.id)] == [True]

    def test_resume_keeps_the_paused_player(self, service, db, seeded, seat, player_id, clock):
        service.change_seat_status(seat.id, "Playing", _ctx(seeded, selected_player_id=player_id))
        clock.advance(5)
        service.change_seat_status(seat.id, "Break", _ctx(seeded))

        other = Player(name="Eve", club_id=seeded.club_id, total_play_time=0)
        db.add(other)
        db.commit()

        resumed = service.change_seat_status(seat.id, "Playing", _ctx(seeded, selected_player_id=other.id))
        assert resumed.player_id == player_id
        assert resumed.time_elapsed == 5
        assert service.ledger.records_for_player(other.id) == []
        assert [r.is_open for r in service.ledger.records_for_player(player_id)] == [False, True]

    def test_block_holds_seat_for_player_without_timing(self, service, seeded, seat, player_id):
        blocked = service.change_seat_status(seat.id, "Blocked", _ctx(seeded, selected_player_id=player_id))
        assert blocked.status == SeatStatus.BLOCKED
        assert blocked.player_id == player_id
        assert blocked.time_started is None
        assert service.ledger.records_for_player(player_id) == []


class TestRejections:
    def test_player_required_leaves_seat_untouched(self, service, db, seeded, seat):
        with pytest.raises(PlayerRequired):
            service.change_seat_status(seat.id, "Playing", _ctx(seeded))
        after = service.get_seat(seat.id)
        assert after == seat
        assert db.query(PlayerTimeRecord).count() == 0

    def test_unknown_status(self, service, seat):
        with pytest.raises(InvalidTransition):
            service.change_seat_status(seat.id, "Dancing")

    def test_missing_seat(self, service):
        with pytest.raises(SeatNotFound):
            service.change_seat_status(4040, "Open")
        with pytest.raises(SeatNotFound):
            service.get_seat(4040)

    def test_player_from_another_club(self, service, db, seeded, seat):
        other = Club(name="Hill Club", owner_id=seeded.owner_id, is_active=True)
        db.add(other)
        db.flush()
        stranger = Player(name="Dee", club_id=other.id, total_play_time=0)
        db.add(stranger)
        db.commit()

        with pytest.raises(PlayerNotFound):
            service.change_seat_status(seat.id, "Playing", _ctx(seeded, selected_player_id=stranger.id))
        assert service.get_seat(seat.id).status == SeatStatus.OPEN


class _RacingRegistry(SqlSeatRegistry):
    """Another request writes the seat right after it is read."""

    def get_seat(self, seat_id):
        seat = super().get_seat(seat_id)
        if seat is not None:
            self.write_seat(seat_id, {})
        return seat


class _FailingRegistry(SqlSeatRegistry):
    def __init__(self, db, clock, error):
        super().__init__(db, clock)
        self._error = error

    def write_seat(self, seat_id, patch, expected_version=None):
        raise self._error


class TestFailures:
    def test_concurrent_change_is_a_conflict(self, db, seeded, seat, clock):
        service = SeatService(db, clock, registry=_RacingRegistry(db, clock))
        with pytest.raises(Conflict):
            service.change_seat_status(seat.id, "Playing", _ctx(seeded, new_player_name="Ana"))

        assert db.query(PlayerTimeRecord).count() == 0
        assert db.query(Player).count() == 0
        assert db.get(TableSeat, seat.id).version == seat.version

    def test_locked_database_is_a_timeout(self, db, seeded, seat, clock):
        error = OperationalError("UPDATE table_seats", {}, Exception("database is locked"))
        service = SeatService(db, clock, registry=_FailingRegistry(db, clock, error))
        with pytest.raises(StorageTimeout):
            service.change_seat_status(seat.id, "Playing", _ctx(seeded, new_player_name="Ana"))

        assert db.query(PlayerTimeRecord).count() == 0
        assert db.query(Player).count() == 0

    def test_other_storage_failures(self, db, seeded, seat, clock):
        service = SeatService(db, clock, registry=_FailingRegistry(db, clock, SQLAlchemyError("boom")))
        with pytest.raises(StorageError):
            service.change_seat_status(seat.id, "Closed")
        assert SeatService(db, clock).get_seat(seat.id).status == SeatStatus.OPEN
