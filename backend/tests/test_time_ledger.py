"""Unit tests for TimeLedger.

Run with: pytest backend/tests/test_time_ledger.py -v
"""

import pytest

from seatkeeper.models.db import Player, PlayerTimeRecord
from seatkeeper.services.time_ledger import TimeLedger


@pytest.fixture
def player_id(db, seeded):
    p = Player(name="Ana", club_id=seeded.club_id, total_play_time=0)
    db.add(p)
    db.commit()
    return p.id


@pytest.fixture
def ledger(db, clock):
    return TimeLedger(db, clock)


class TestTimeLedger:
    def test_start_opens_a_record(self, ledger, player_id, seeded, clock):
        seat_id = seeded.seats[0].id
        record = ledger.start_timing(player_id, seat_id, None)
        assert record.is_open
        assert record.start_time == clock()
        assert record.duration == 0

    def test_start_is_idempotent_per_player_and_seat(self, ledger, db, player_id, seeded, clock):
        seat_id = seeded.seats[0].id
        first = ledger.start_timing(player_id, seat_id)
        clock.advance(30)
        second = ledger.start_timing(player_id, seat_id)
        assert second.id == first.id
        assert db.query(PlayerTimeRecord).count() == 1

    def test_stop_without_start_is_a_no_op(self, ledger, player_id, seeded):
        assert ledger.stop_timing(player_id, seeded.seats[0].id) is None

    def test_stop_truncates_to_whole_seconds(self, ledger, db, player_id, seeded, clock):
        seat_id = seeded.seats[0].id
        ledger.start_timing(player_id, seat_id)
        clock.advance(10.9)
        record = ledger.stop_timing(player_id, seat_id)
        assert record.duration == 10
        assert record.end_time == clock()

        player = db.get(Player, player_id)
        assert player.total_play_time == 10
        assert player.last_played == clock()

    def test_elapsed_sums_closed_and_running_intervals(self, ledger, player_id, seeded, clock):
        seat_id = seeded.seats[0].id
        ledger.start_timing(player_id, seat_id)
        clock.advance(40)
        ledger.stop_timing(player_id, seat_id)
        clock.advance(600)
        ledger.start_timing(player_id, seat_id)
        clock.advance(15)
        assert ledger.get_elapsed_seconds(player_id) == 55

    def test_elapsed_is_read_only(self, ledger, db, player_id, seeded, clock):
        seat_id = seeded.seats[0].id
        ledger.start_timing(player_id, seat_id)
        clock.advance(5)
        assert ledger.get_elapsed_seconds(player_id) == 5
        assert ledger.get_elapsed_seconds(player_id) == 5
        assert db.query(PlayerTimeRecord).filter(PlayerTimeRecord.end_time.is_(None)).count() == 1
        assert db.get(Player, player_id).total_play_time == 0

    def test_elapsed_for_unknown_player_is_zero(self, ledger):
        assert ledger.get_elapsed_seconds(12345) == 0

    def test_elapsed_scoped_to_session(self, ledger, player_id, seeded, clock):
        seat_id = seeded.seats[0].id
        ledger.start_timing(player_id, seat_id, session_id=None)
        clock.advance(20)
        ledger.stop_timing(player_id, seat_id)
        assert ledger.get_elapsed_seconds(player_id, session_id=99) == 0
        assert ledger.get_elapsed_seconds(player_id) == 20

    def test_same_player_on_two_seats_is_tracked_per_seat(self, ledger, player_id, seeded, clock):
        first, second = seeded.seats[0].id, seeded.seats[1].id
        ledger.start_timing(player_id, first)
        ledger.start_timing(player_id, second)
        clock.advance(12)
        ledger.stop_timing(player_id, first)
        records = ledger.records_for_player(player_id)
        assert [r.is_open for r in records] == [False, True]
