#!/usr/bin/env python3
"""
Utility functions for the IGC / GPSDump flight importer
"""

import re
from datetime import datetime, timezone
from typing import Optional, Union

from igc_constants import (
    DATE_FORMAT_ISO,
    DURATION_ZERO_TEXT,
    IGC_LAST_CENTURY_DIGITS,
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
    TIME_FORMAT_HMS,
)

ISO_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
SLASH_DATE_RE = re.compile(r'^(\d{2})/(\d{2})/(\d{4})$')


def expandYear(year_short: str) -> int:
    """
    Turn a 2-digit IGC year into a full year.
    Years starting with 8 or 9 belong to the 1900s, everything else to the 2000s.
    """
    century = '19' if year_short[:1] in IGC_LAST_CENTURY_DIGITS else '20'
    return int(century + year_short)


def secondsFromTime(time_str: str) -> int:
    """Convert H:MM[:SS] to seconds since midnight"""
    parts = [int(part) for part in time_str.strip().split(':')]
    hours = parts[0]
    minutes = parts[1] if len(parts) > 1 else 0
    seconds = parts[2] if len(parts) > 2 else 0
    return hours * SECONDS_PER_HOUR + minutes * SECONDS_PER_MINUTE + seconds


def elapsedSeconds(first_time: str, last_time: str) -> int:
    """Seconds between two times of day, wrapping across midnight"""
    duration = secondsFromTime(last_time) - secondsFromTime(first_time)
    if duration < 0:
        duration += SECONDS_PER_DAY
    return duration


def formatDuration(seconds: Union[int, float, None]) -> str:
    """Format a duration as HHhMMmn"""
    if not seconds:
        return DURATION_ZERO_TEXT
    hours = int(seconds // SECONDS_PER_HOUR)
    minutes = int((seconds % SECONDS_PER_HOUR) // SECONDS_PER_MINUTE)
    return f"{hours:02d}h{minutes:02d}mn"


def normalizeDateToISO(date_str: str, date_iso: Optional[str] = None) -> str:
    """
    Return a YYYY-MM-DD date.
    Accepts an already canonical date or DD/MM/YYYY; anything else is returned unchanged.
    """
    if date_iso and ISO_DATE_RE.match(date_iso):
        return date_iso

    date_str = date_str or ''
    match = SLASH_DATE_RE.match(date_str)
    if match:
        return f"{match.group(3)}-{match.group(2)}-{match.group(1)}"

    return date_str


def dumpDateToISO(date_str: str) -> Optional[str]:
    """Convert a GPSDump DD.MM.YY date to YYYY-MM-DD, None if it has no three parts"""
    parts = date_str.split('.')
    if len(parts) != 3:
        return None
    return '20' + parts[2] + '-' + parts[1] + '-' + parts[0]


def utcMillis(date_iso: str, time_str: str) -> int:
    """Milliseconds since the epoch for a UTC date and time of day"""
    moment = datetime.strptime(f"{date_iso} {time_str}", f"{DATE_FORMAT_ISO} {TIME_FORMAT_HMS}")
    return int(moment.replace(tzinfo=timezone.utc).timestamp() * 1000)


def toHMS(moment: datetime) -> str:
    """Convert a datetime to HH:MM:SS"""
    return moment.strftime(TIME_FORMAT_HMS)
