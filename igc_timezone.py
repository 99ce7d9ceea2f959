#!/usr/bin/env python3
"""
UTC offset resolution for the flight importer

The zone name comes from the takeoff coordinates, the offset from the civil
time rules of that zone at the takeoff instant, so DST is honoured.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timezonefinder import TimezoneFinder

from igc_model import ParsedFlightSummary
from igc_utils import toHMS, utcMillis
from igc_constants import SECONDS_PER_MINUTE

# Configure logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolved:
    offset_minutes: int


@dataclass(frozen=True)
class Unresolved:
    reason: str


class TimeZoneResolver:
    """
    Resolves coordinates and a UTC instant to a UTC offset in minutes.
    Positive offsets mean local time is ahead of UTC.
    """

    def __init__(self, finder: Optional[TimezoneFinder] = None):
        self._finder = finder

    @property
    def finder(self) -> TimezoneFinder:
        # Loading the boundary data is slow, only do it when first needed
        if self._finder is None:
            self._finder = TimezoneFinder()
        return self._finder

    def zone_name(self, latitude: float, longitude: float) -> Optional[str]:
        return self.finder.timezone_at(lng=longitude, lat=latitude)

    def resolve(self, latitude: float, longitude: float, utc_millis: int) -> Union[Resolved, Unresolved]:
        try:
            name = self.zone_name(latitude, longitude)
        except (OSError, RuntimeError) as e:
            return Unresolved(f"timezone lookup unavailable: {e}")
        except ValueError as e:
            return Unresolved(f"invalid coordinates ({latitude}, {longitude}): {e}")

        if not name:
            return Unresolved(f"no timezone at ({latitude}, {longitude})")

        try:
            zone = ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            return Unresolved(f"unknown timezone {name}: {e}")

        instant = datetime.fromtimestamp(utc_millis / 1000, tz=timezone.utc)
        offset = instant.astimezone(zone).utcoffset()
        if offset is None:
            return Unresolved(f"no UTC offset for {name}")

        return Resolved(int(offset.total_seconds()) // SECONDS_PER_MINUTE)

    def offset_minutes(self, latitude: float, longitude: float, utc_millis: int) -> int:
        """UTC offset in minutes, 0 when the lookup fails"""
        result = self.resolve(latitude, longitude, utc_millis)
        if isinstance(result, Unresolved):
            logger.warning(f"Timezone lookup failed, using UTC: {result.reason}")
            return 0
        return result.offset_minutes

    @staticmethod
    def local_time(utc_millis: int, offset_minutes: int) -> str:
        """Wall-clock HH:MM:SS at the instant shifted by the offset"""
        instant = datetime.fromtimestamp(utc_millis / 1000, tz=timezone.utc)
        return toHMS(instant + timedelta(minutes=offset_minutes))

    def localize(self, summary: ParsedFlightSummary) -> ParsedFlightSummary:
        """Fill utc_offset_minutes and takeoff_time_local of a parsed summary in place"""
        millis = utcMillis(summary.date_iso, summary.start_time_utc)
        summary.utc_offset_minutes = self.offset_minutes(summary.latitude, summary.longitude, millis)
        summary.takeoff_time_local = self.local_time(millis, summary.utc_offset_minutes)
        return summary


# Public functions

def computeOffsetUTC(latitude: float, longitude: float, utc_millis: int) -> int:
    """UTC offset in minutes for a position and instant"""
    return TimeZoneResolver().offset_minutes(latitude, longitude, utc_millis)

def computeLocalLaunchTime(utc_millis: int, offset_minutes: int) -> str:
    """Local HH:MM:SS of a UTC instant"""
    return TimeZoneResolver.local_time(utc_millis, offset_minutes)
