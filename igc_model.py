#!/usr/bin/env python3
"""
Data models and enums for the IGC / GPSDump flight importer
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from igc_constants import (
    DEFAULT_NA_TEXT,
    GPS_MODEL_FLYMASTER,
    GPS_MODEL_FLYMASTER_OLD,
    GPS_MODEL_FLYTEC_20,
    GPS_MODEL_FLYTEC_15,
)
from igc_constants import FileType as FileTypeConstants
from igc_utils import formatDuration


class FileType(Enum):
    UNKNOWN = FileTypeConstants.UNKNOWN
    IGC = FileTypeConstants.IGC
    GPX = FileTypeConstants.GPX


class Platform(Enum):
    """Operating system / driver combination GPSDump runs on"""
    WIN = 'win'
    MAC32 = 'mac32'
    MAC64 = 'mac64'
    LINUX = 'linux'


class GpsModel(Enum):
    """Serial instruments GPSDump knows how to talk to"""
    FLYMASTER = GPS_MODEL_FLYMASTER
    FLYMASTER_OLD = GPS_MODEL_FLYMASTER_OLD
    FLYTEC_20 = GPS_MODEL_FLYTEC_20
    FLYTEC_15 = GPS_MODEL_FLYTEC_15


class FailureKind(Enum):
    """Structured failure categories reported to callers"""
    FOLDER_NOT_FOUND = 'folder_not_found'
    SCAN_ERROR = 'scan_error'
    GPSDUMP_NOT_FOUND = 'gpsdump_not_found'
    GPSDUMP_ERROR = 'gpsdump_error'
    NO_RESPONSE = 'no_response'
    UNSUPPORTED_PLATFORM = 'unsupported_platform'
    UNKNOWN_MODEL = 'unknown_model'
    INVALID_TRACK = 'invalid_track'


class IngestionState(Enum):
    IDLE = 'idle'
    SCANNING = 'scanning'
    PARSING = 'parsing'
    OFFSET_RESOLVING = 'offset_resolving'
    MATCHING = 'matching'
    DONE = 'done'
    FAILED = 'failed'


@dataclass(frozen=True)
class TrackFile:
    """A track file found on disk"""
    name: str
    path: str
    extension: str
    size: int


@dataclass(frozen=True)
class FixRecord:
    """A decoded IGC B record"""
    time: str
    latitude: float
    longitude: float
    valid: bool
    pressure_altitude: int
    gnss_altitude: int


@dataclass
class ParsedFlightSummary:
    """Identification fields extracted from a single track"""
    is_valid: bool = False
    date: str = ''
    date_iso: str = ''
    start_time_utc: str = ''
    takeoff_time_local: str = ''
    duration_seconds: int = 0
    pilot_name: str = ''
    glider_name: str = ''
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: int = 0
    utc_offset_minutes: int = 0
    file_name: str = ''
    file_path: str = ''

    @property
    def duration_str(self) -> str:
        return formatDuration(self.duration_seconds)


@dataclass(frozen=True)
class GpsDumpFlightEntry:
    """One line of a GPSDump flight list"""
    date: str
    takeoff_time: str
    duration_str: str
    device_order: str
    is_new: bool = True


@dataclass(frozen=True)
class UnrecognizedLine:
    """A GPSDump output line that matched no known pattern"""
    index: int
    text: str

    def __str__(self) -> str:
        return f"Line {self.index}: {self.text}"


@dataclass
class FlightListResult:
    """Decoded answer of one GPSDump flight list query"""
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    firmware_version: Optional[str] = None
    flights: List[GpsDumpFlightEntry] = field(default_factory=list)
    unrecognized_lines: List[UnrecognizedLine] = field(default_factory=list)
    error: bool = False
    error_message: Optional[str] = None


@dataclass(frozen=True)
class LogbookRow:
    """Subset of a logbook flight row read during duplicate checks"""
    id: Optional[int]
    local_timestamp: str
    duration_seconds: Optional[int]
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class FlightCheckResult:
    exists: bool


@dataclass
class ImportCandidate:
    """A parsed track annotated with its logbook verdict"""
    summary: ParsedFlightSummary
    exists: bool = False

    @property
    def to_store(self) -> bool:
        return self.summary.is_valid and not self.exists


@dataclass
class DeviceFlight:
    """A single flight downloaded from a serial instrument"""
    summary: ParsedFlightSummary
    igc_text: str
    exists: bool = False


@dataclass
class IngestionOutcome:
    """Result of one ingestion run, never raised"""
    success: bool
    state: IngestionState
    message: str = ''
    failure: Optional[FailureKind] = None
    igc_files: List[TrackFile] = field(default_factory=list)
    gpx_files: List[TrackFile] = field(default_factory=list)
    candidates: List[ImportCandidate] = field(default_factory=list)
    flight_list: Optional[FlightListResult] = None
    verdicts: Dict[int, bool] = field(default_factory=dict)
    device_flight: Optional[DeviceFlight] = None

    @property
    def failure_text(self) -> str:
        return self.failure.value if self.failure else DEFAULT_NA_TEXT
