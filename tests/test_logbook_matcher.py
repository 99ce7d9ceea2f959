"""
Tests for logbook_matcher.py duplicate detection
"""
import sqlite3
import pytest
from logbook_matcher import (
    ExactMatcher,
    FuzzyMatcher,
    reconcile_time_offset,
    durations_match,
    minute_second_offset,
    apply_verdicts,
    check_flight_exists,
    check_flights,
    check_flight_list
)
from logbook_store import Logbook, open_logbook
from igc_model import GpsDumpFlightEntry, LogbookRow, ParsedFlightSummary


def flight(date_iso="2024-06-18", takeoff="12:23:45", date="18/06/2024", start="10:23:45"):
    return ParsedFlightSummary(is_valid=True, date=date, date_iso=date_iso,
                               start_time_utc=start, takeoff_time_local=takeoff)


def entry(date, takeoff, duration):
    return GpsDumpFlightEntry(date=date, takeoff_time=takeoff, duration_str=duration,
                              device_order="-gyn,-ca0,flysd")


class BrokenLogbook(Logbook):
    """Logbook failing on every query"""

    def count_by_local_minute(self, date_time):
        raise sqlite3.DatabaseError("disk I/O error")

    def rows_in_date_range(self, start, end):
        raise sqlite3.DatabaseError("disk I/O error")


class TestExactMatcher:
    """Tests for the local minute lookup"""

    def test_search_key(self):
        assert ExactMatcher.search_key(flight()) == "2024-06-18 12:23"

    def test_search_key_from_slash_date(self):
        assert ExactMatcher.search_key(flight(date_iso="")) == "2024-06-18 12:23"

    def test_search_key_falls_back_to_start_time(self):
        assert ExactMatcher.search_key(flight(takeoff="")) == "2024-06-18 10:23"

    def test_search_key_missing_time(self):
        assert ExactMatcher.search_key(flight(takeoff="", start="")) is None

    def test_exists(self, sample_logbook):
        with open_logbook(sample_logbook) as logbook:
            assert check_flight_exists(logbook, flight()).exists is True
            assert check_flight_exists(logbook, flight(takeoff="12:24:00")).exists is False

    def test_missing_date_is_new(self, sample_logbook):
        with open_logbook(sample_logbook) as logbook:
            assert check_flight_exists(logbook, flight(date_iso="", date="")).exists is False

    def test_same_answer_twice(self, sample_logbook):
        with open_logbook(sample_logbook) as logbook:
            first = check_flight_exists(logbook, flight())
            second = check_flight_exists(logbook, flight())
        assert first == second

    def test_logbook_error_is_new(self):
        assert check_flight_exists(BrokenLogbook(), flight()).exists is False


class TestCheckFlights:
    """Tests for the batch check"""

    def test_aligned_with_input(self, sample_logbook):
        flights = [flight(), flight(takeoff="15:00:00"), flight(takeoff="", start="")]
        results = check_flights(sample_logbook, flights)
        assert [result.exists for result in results] == [True, False, False]

    def test_missing_logbook_all_new(self, tmp_path):
        results = check_flights(str(tmp_path / "absent.db"), [flight(), flight()])
        assert [result.exists for result in results] == [False, False]

    def test_empty_batch(self, sample_logbook):
        assert check_flights(sample_logbook, []) == []


class TestTolerances:
    """Tests for the fuzzy tolerances"""

    def test_exactly_300_is_not_wrapped(self):
        assert reconcile_time_offset(300) == (300, True)

    def test_301_is_wrapped(self):
        assert reconcile_time_offset(301) == (3299, False)

    def test_wrapped_359_matches(self):
        assert reconcile_time_offset(3241) == (359, True)

    def test_wrapped_361_does_not_match(self):
        assert reconcile_time_offset(3239) == (361, False)

    def test_negative_difference_is_kept(self):
        assert reconcile_time_offset(-200) == (-200, True)

    def test_duration_boundary(self):
        assert durations_match(1000, 0, 821) is True
        assert durations_match(1000, 0, 820) is False
        assert durations_match(1000, 0, 819) is False

    def test_duration_corrected_by_time_difference(self):
        assert durations_match(3600, 150, 3450) is True

    def test_minute_second_offset(self):
        assert minute_second_offset("2020-07-23 10:58:30") == 3510
        assert minute_second_offset("2020-07-23") is None


class TestFuzzyMatcher:
    """Tests for flight list matching"""

    @pytest.fixture
    def dump_logbook(self, make_logbook):
        return make_logbook([
            ("2020-07-23 10:58:30", 3450),
            ("2020-07-23 06:10:00", 4800),
            ("2020-07-21 12:00:00", "unknown"),
        ])

    def test_row_matches_across_hour(self):
        row = LogbookRow(id=1, local_timestamp="2020-07-23 10:58:30", duration_seconds=3450)
        assert FuzzyMatcher.row_matches(row, 60, 3600) is True

    def test_row_with_bad_duration_is_skipped(self):
        row = LogbookRow(id=1, local_timestamp="2020-07-23 10:58:30", duration_seconds="n/a")
        assert FuzzyMatcher.row_matches(row, 60, 3600) is False

    def test_verdicts(self, dump_logbook):
        entries = [
            entry("23.07.20", "11:01:00", "01:00:00"),
            entry("23.07.20", "06:08:16", "01:21:57"),
            entry("22.07.20", "09:00:00", "01:00:00"),
            entry("23.07.20", "08:30:00", "02:00:00"),
            entry("21.07.20", "12:00:00", "01:00:00"),
        ]
        verdicts = check_flight_list(dump_logbook, entries)
        assert verdicts == {0: True, 1: True, 2: False, 3: False, 4: False}

    def test_malformed_entries_are_new(self, dump_logbook):
        entries = [
            entry("2020/07/23", "11:01:00", "01:00:00"),
            entry("23.07.20", "11:01", "01:00:00"),
            entry("23.07.20", "11:01:00", "60mn"),
        ]
        assert check_flight_list(dump_logbook, entries) == {0: False, 1: False, 2: False}

    def test_logbook_error_is_new(self):
        verdicts = FuzzyMatcher(BrokenLogbook()).verdicts([entry("23.07.20", "11:01:00", "01:00:00")])
        assert verdicts == {0: False}

    def test_missing_logbook(self, tmp_path):
        assert check_flight_list(str(tmp_path / "absent.db"), [entry("23.07.20", "11:01:00", "01:00:00")]) == {}


class TestApplyVerdicts:
    """Tests for verdict projection"""

    def test_new_entries(self):
        entries = [entry("23.07.20", "11:01:00", "01:00:00"), entry("22.07.20", "09:00:00", "01:00:00")]
        updated = apply_verdicts(entries, {0: True, 1: False})
        assert [item.is_new for item in updated] == [False, True]
        assert entries[0].is_new is True
        assert updated[0].date == "23.07.20"

    def test_missing_verdict_keeps_entry(self):
        entries = [entry("23.07.20", "11:01:00", "01:00:00")]
        assert apply_verdicts(entries, {}) == entries
