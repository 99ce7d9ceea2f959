#!/usr/bin/env python3
"""
Minimal IGC reader for the flight importer

Only the fields needed to identify a flight are extracted: the date header,
pilot and glider headers and the first fix record. Reading stops at the first
B record; the flight duration comes from the last few KiB of the file.
"""

import io
import logging
import os
import re
from typing import Iterable, Optional, TextIO, Tuple

from igc_model import FileType, FixRecord, ParsedFlightSummary
from igc_utils import elapsedSeconds, expandYear
from igc_constants import (
    IGC_DATE_PATTERN,
    IGC_FIX_PATTERN,
    IGC_FIX_TIME_PATTERN,
    IGC_HEADER_CODE_SLICE,
    IGC_HEADER_DATE,
    IGC_HEADER_GLIDER_TYPE,
    IGC_HEADER_PILOT,
    IGC_RECORD_HEADER,
    IGC_RECORD_MANUFACTURER,
    IGC_RECORD_POSITION,
    IGC_TAIL_READ_SIZE,
    SECONDS_PER_MINUTE,
)

# Configure logger
logger = logging.getLogger(__name__)

DATE_RE = re.compile(IGC_DATE_PATTERN)
FIX_RE = re.compile(IGC_FIX_PATTERN)
FIX_TIME_RE = re.compile(IGC_FIX_TIME_PATTERN)


class IgcFileDetector:
    """
    Detects the type of a track from its first lines.
    """

    @staticmethod
    def _read_line(file) -> str:
        line = file.readline()
        if isinstance(line, bytes):
            line = line.decode('utf-8', errors='ignore')
        return line

    @staticmethod
    def detect_filetype(file) -> FileType:
        """Determine the file type based on content"""
        filetype = FileType.UNKNOWN
        starting_pos = file.tell()

        line = IgcFileDetector._read_line(file)
        if line.startswith(IGC_RECORD_MANUFACTURER):
            if IgcFileDetector._read_line(file).startswith(IGC_RECORD_HEADER):
                filetype = FileType.IGC
        elif line.startswith('<?xml'):
            if IgcFileDetector._read_line(file).lstrip().startswith('<gpx'):
                filetype = FileType.GPX

        file.seek(starting_pos)
        return filetype


class IgcHeaderParser:
    """
    Parses the H records the importer cares about.
    """

    @staticmethod
    def header_code(line: str) -> str:
        """3-character header code, e.g. DTE for HFDTE"""
        return line[IGC_HEADER_CODE_SLICE]

    @staticmethod
    def parse_date(line: str) -> Optional[Tuple[str, str]]:
        """
        Parse HFDTE / HFDTEDATE: headers.
        Returns (iso date, display date) or None when the line does not match.
        """
        match = DATE_RE.match(line)
        if not match:
            return None

        day, month, year_short = match.group(1), match.group(2), match.group(3)
        year = expandYear(year_short)
        return f"{year}-{month}-{day}", f"{day}/{month}/{year}"

    @staticmethod
    def parse_value(line: str) -> str:
        """Text after the first colon, underscores turned into spaces"""
        colon = line.find(':')
        if colon > 0:
            return line[colon + 1:].replace('_', ' ').strip()
        return ''


class IgcPositionParser:
    """
    Parses position records (B records).
    """

    @staticmethod
    def parse_fix(line: str) -> Optional[FixRecord]:
        """Decode a B record, None if it does not follow the fixed layout"""
        match = FIX_RE.match(line)
        if not match:
            return None

        groups = match.groups()
        time = f"{groups[0]}:{groups[1]}:{groups[2]}"

        latitude = int(groups[3]) + float(f"{groups[4]}.{groups[5]}") / SECONDS_PER_MINUTE
        if groups[6] == 'S':
            latitude = -latitude

        longitude = int(groups[7]) + float(f"{groups[8]}.{groups[9]}") / SECONDS_PER_MINUTE
        if groups[10] == 'W':
            longitude = -longitude

        return FixRecord(
            time=time,
            latitude=latitude,
            longitude=longitude,
            valid=groups[11] == 'A',
            pressure_altitude=int(groups[12]),
            gnss_altitude=int(groups[13]),
        )

    @staticmethod
    def parse_time(line: str) -> Optional[str]:
        """Time of day of a B record as HH:MM:SS"""
        match = FIX_TIME_RE.match(line)
        if not match:
            return None
        return f"{match.group(1)}:{match.group(2)}:{match.group(3)}"


class IgcMinimalParser:
    """
    Builds a ParsedFlightSummary from the start of an IGC track.
    The UTC offset and local takeoff time are left to the timezone resolver.
    """

    def __init__(self, tail_size: int = IGC_TAIL_READ_SIZE):
        self.tail_size = tail_size
        self.header_parser = IgcHeaderParser()
        self.position_parser = IgcPositionParser()

    def parse_lines(self, lines: Iterable[str]) -> Optional[ParsedFlightSummary]:
        """
        Scan lines up to the first B record.
        Returns None when the date header or the first fix is missing.
        """
        summary = ParsedFlightSummary()
        first_fix = None

        for line in lines:
            if isinstance(line, bytes):
                line = line.decode('utf-8', errors='ignore')
            line = line.rstrip('\r\n')
            code = self.header_parser.header_code(line)

            if code == IGC_HEADER_DATE:
                parsed = self.header_parser.parse_date(line)
                if parsed:
                    summary.date_iso, summary.date = parsed
            elif code == IGC_HEADER_PILOT:
                summary.pilot_name = self.header_parser.parse_value(line)
            elif code == IGC_HEADER_GLIDER_TYPE:
                summary.glider_name = self.header_parser.parse_value(line)

            if line.startswith(IGC_RECORD_POSITION):
                first_fix = self.position_parser.parse_fix(line)
                break

        if first_fix is None or not summary.date_iso:
            return None

        summary.is_valid = True
        summary.start_time_utc = first_fix.time
        summary.latitude = first_fix.latitude
        summary.longitude = first_fix.longitude
        summary.altitude = first_fix.gnss_altitude
        return summary

    def last_fix_time(self, file_path: str) -> Optional[str]:
        """Time of the last B record, read from the tail of the file"""
        file_size = os.path.getsize(file_path)
        read_size = min(self.tail_size, file_size)

        with open(file_path, 'rb') as track_file:
            track_file.seek(max(0, file_size - read_size))
            content = track_file.read(read_size).decode('utf-8', errors='ignore')

        return self._last_fix_time_in(content)

    def _last_fix_time_in(self, content: str) -> Optional[str]:
        for line in reversed(content.split('\n')):
            if line.startswith(IGC_RECORD_POSITION):
                time = self.position_parser.parse_time(line)
                if time:
                    return time
        return None

    def calculate_duration(self, file_path: str, first_time: str) -> int:
        """Flight duration in seconds, 0 when it cannot be computed"""
        try:
            last_time = self.last_fix_time(file_path)
        except OSError as e:
            logger.warning(f"Could not read end of {file_path}: {e}")
            return 0

        if not last_time or not first_time:
            return 0
        return elapsedSeconds(first_time, last_time)

    def parse_file(self, file_path: str) -> Optional[ParsedFlightSummary]:
        """Parse headers and first fix of an IGC file on disk"""
        with open(file_path, 'r', encoding='utf-8', errors='ignore') as track_file:
            summary = self.parse_lines(track_file)

        if summary is None:
            logger.debug(f"No date header or fix record in {file_path}")
            return None

        summary.duration_seconds = self.calculate_duration(file_path, summary.start_time_utc)
        summary.file_name = os.path.basename(file_path)
        summary.file_path = file_path
        return summary

    def parse_text(self, igc_text: str) -> Optional[ParsedFlightSummary]:
        """Parse an IGC held in memory, e.g. a track downloaded from an instrument"""
        summary = self.parse_lines(io.StringIO(igc_text))
        if summary is None:
            return None

        last_time = self._last_fix_time_in(igc_text)
        if last_time:
            summary.duration_seconds = elapsedSeconds(summary.start_time_utc, last_time)
        return summary


# Public functions

def getFiletype(file: TextIO) -> FileType:
    """Determine the file type based on content"""
    return IgcFileDetector.detect_filetype(file)

def parseBRecord(line: str) -> Optional[FixRecord]:
    """Decode a single B record"""
    return IgcPositionParser.parse_fix(line)

def parseIgcMinimal(file_path: str, resolver=None) -> Optional[ParsedFlightSummary]:
    """
    Parse an IGC file minimally.
    When a resolver is given the UTC offset and local takeoff time are filled in.
    """
    summary = IgcMinimalParser().parse_file(file_path)
    if summary is not None and resolver is not None:
        resolver.localize(summary)
    return summary
