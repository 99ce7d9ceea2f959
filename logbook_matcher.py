#!/usr/bin/env python3
"""
Duplicate flight detection against the logbook

Two strategies are used:
- exact: tracks read from files know their local takeoff minute, which is
  looked up as is.
- fuzzy: flight lists read from serial instruments only carry the device's
  own clock, which drifts from the logged time by a few minutes. A flight of
  the same day matches when its minute/second offset is within 5 minutes
  (6 across an hour boundary) and the durations agree within 3 minutes.
"""

import logging
import re
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from igc_model import FlightCheckResult, GpsDumpFlightEntry, LogbookRow, ParsedFlightSummary
from igc_utils import dumpDateToISO, normalizeDateToISO
from igc_constants import (
    MATCH_DURATION_LIMIT,
    MATCH_OFFSET_LIMIT,
    MATCH_WRAP_LIMIT,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
)
from logbook_store import Logbook, open_logbook

# Configure logger
logger = logging.getLogger(__name__)

MIN_SEC_RE = re.compile(r':([0-5][0-9]):([0-5][0-9])')


class ExactMatcher:
    """
    Looks a flight up by its local takeoff minute.
    """

    def __init__(self, logbook: Logbook):
        self.logbook = logbook

    @staticmethod
    def search_key(flight: ParsedFlightSummary) -> Optional[str]:
        """'YYYY-MM-DD HH:MM' of the local takeoff, None when date or time is missing"""
        date_iso = normalizeDateToISO(flight.date, flight.date_iso)
        time = (flight.takeoff_time_local or flight.start_time_utc or '')[:5]
        if not date_iso or not time:
            return None
        return f"{date_iso} {time}"

    def exists(self, flight: ParsedFlightSummary) -> bool:
        key = self.search_key(flight)
        if key is None:
            logger.debug(f"Missing date or time for {flight.file_name or flight}")
            return False

        try:
            found = self.logbook.count_by_local_minute(key) > 0
        except Exception as e:
            logger.error(f"Error checking flight {key}: {e}")
            return False

        logger.debug(f"{key} -> {'EXISTS' if found else 'NEW'}")
        return found

    def check_all(self, flights: Sequence[ParsedFlightSummary]) -> List[FlightCheckResult]:
        return [FlightCheckResult(exists=self.exists(flight)) for flight in flights]


def reconcile_time_offset(diff_seconds: int) -> Tuple[int, bool]:
    """
    Compare minute/second offsets of two takeoff times.
    Differences above 5 minutes are taken as crossing an hour boundary and
    replaced by 3600 - diff, which must then be below 6 minutes.
    Returns the difference used for the duration check and whether it matches.
    """
    if diff_seconds > MATCH_OFFSET_LIMIT:
        diff_seconds = SECONDS_PER_HOUR - diff_seconds
        return diff_seconds, diff_seconds < MATCH_WRAP_LIMIT
    return diff_seconds, True


def durations_match(device_duration: int, diff_seconds: int, logged_duration: int) -> bool:
    """Device duration corrected by the takeoff difference against the logged one"""
    return abs((device_duration - diff_seconds) - logged_duration) < MATCH_DURATION_LIMIT


def minute_second_offset(time_text: str) -> Optional[int]:
    """Seconds past the hour of the first :MM:SS found in time_text"""
    match = MIN_SEC_RE.search(time_text)
    if not match:
        return None
    return int(match.group(1)) * SECONDS_PER_MINUTE + int(match.group(2))


def _hms_seconds(text: str) -> Optional[int]:
    parts = text.split(':')
    if len(parts) != 3:
        return None
    try:
        hours, minutes, seconds = (int(part) for part in parts)
    except ValueError:
        return None
    return hours * SECONDS_PER_HOUR + minutes * SECONDS_PER_MINUTE + seconds


class FuzzyMatcher:
    """
    Matches GPSDump flight list entries with logbook flights of the same day.
    """

    def __init__(self, logbook: Logbook):
        self.logbook = logbook

    @staticmethod
    def row_matches(row: LogbookRow, takeoff_offset: int, device_duration: int) -> bool:
        logged_offset = minute_second_offset(row.local_timestamp or '')
        if logged_offset is None:
            return False
        try:
            logged_duration = int(row.duration_seconds)
        except (TypeError, ValueError):
            return False

        diff, offset_ok = reconcile_time_offset(logged_offset - takeoff_offset)
        return offset_ok and durations_match(device_duration, diff, logged_duration)

    def is_duplicate(self, entry: GpsDumpFlightEntry) -> bool:
        date_iso = dumpDateToISO(entry.date)
        if date_iso is None:
            return False

        takeoff_parts = entry.takeoff_time.split(':')
        if len(takeoff_parts) != 3:
            return False
        try:
            takeoff_offset = int(takeoff_parts[1]) * SECONDS_PER_MINUTE + int(takeoff_parts[2])
        except ValueError:
            return False

        device_duration = _hms_seconds(entry.duration_str)
        if device_duration is None:
            return False

        rows = self.logbook.rows_in_date_range(f"{date_iso} 00:00:00", f"{date_iso} 23:59:59")
        for row in rows:
            if self.row_matches(row, takeoff_offset, device_duration):
                return True
        return False

    def verdicts(self, entries: Sequence[GpsDumpFlightEntry]) -> Dict[int, bool]:
        """Map of entry index to duplicate verdict"""
        result = {}
        for index, entry in enumerate(entries):
            try:
                result[index] = self.is_duplicate(entry)
            except Exception as e:
                logger.error(f"Error checking {entry.date} {entry.takeoff_time}: {e}")
                result[index] = False
        return result


def apply_verdicts(entries: Sequence[GpsDumpFlightEntry],
                   verdicts: Dict[int, bool]) -> List[GpsDumpFlightEntry]:
    """Copies of the entries with is_new cleared on duplicates"""
    return [
        replace(entry, is_new=False) if verdicts.get(index) else entry
        for index, entry in enumerate(entries)
    ]


# Public functions

def check_flight_exists(logbook: Logbook, flight: ParsedFlightSummary) -> FlightCheckResult:
    """Exact check of a single flight"""
    return FlightCheckResult(exists=ExactMatcher(logbook).exists(flight))

def check_flights(db_path: Optional[str], flights: Sequence[ParsedFlightSummary]) -> List[FlightCheckResult]:
    """
    Exact check of a batch of flights, aligned with the input.
    Every flight is new when the logbook cannot be opened.
    """
    logbook = open_logbook(db_path)
    if logbook is None:
        return [FlightCheckResult(exists=False) for _ in flights]

    with logbook:
        results = ExactMatcher(logbook).check_all(flights)

    existing = sum(1 for result in results if result.exists)
    logger.info(f"Found {existing}/{len(flights)} existing flights")
    return results

def check_flight_list(db_path: Optional[str], entries: Sequence[GpsDumpFlightEntry]) -> Dict[int, bool]:
    """Fuzzy check of a GPSDump flight list, empty verdicts when the logbook cannot be opened"""
    logbook = open_logbook(db_path)
    if logbook is None:
        return {}

    with logbook:
        return FuzzyMatcher(logbook).verdicts(entries)
