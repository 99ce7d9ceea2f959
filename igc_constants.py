#!/usr/bin/env python3
"""
Constants for the IGC / GPSDump flight importer
"""

# File types
class FileType:
    UNKNOWN = 0
    IGC = 1
    GPX = 2

# Track file discovery
TRACK_EXTENSIONS = ('igc', 'gpx')
SCAN_MAX_DEPTH = 3
SCAN_SKIP_PREFIXES = ('.', '_')
SCAN_SKIP_FOLDERS = ('node_modules', '__MACOSX')

# IGC file constants
IGC_HEADER_PILOT = "PLT"
IGC_HEADER_GLIDER_TYPE = "GTY"
IGC_HEADER_DATE = "DTE"
IGC_RECORD_MANUFACTURER = "A"
IGC_RECORD_HEADER = "H"
IGC_RECORD_POSITION = "B"
IGC_TAIL_READ_SIZE = 4096
IGC_MIN_DOWNLOAD_LENGTH = 100

# Header type is the 3-character code after "H" and the source character (F/P/O)
IGC_HEADER_CODE_SLICE = slice(2, 5)

# HFDTE160624 or HFDTEDATE:160624,01
IGC_DATE_PATTERN = r'^H.DTE(?:DATE:)?(\d{2})(\d{2})(\d{2})(?:,?(\d{2}))?'
IGC_FIX_PATTERN = (
    r'^B(\d{2})(\d{2})(\d{2})'
    r'(\d{2})(\d{2})(\d{3})([NS])'
    r'(\d{3})(\d{2})(\d{3})([EW])'
    r'([AV])(-?\d{4}|\d{5})(-?\d{4}|\d{5})'
)
IGC_FIX_TIME_PATTERN = r'^B(\d{2})(\d{2})(\d{2})'

# First character of a 2-digit year that places it in the 1900s
IGC_LAST_CENTURY_DIGITS = ('8', '9')

# Time arithmetic
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400

# Date and time formats
DATE_FORMAT_ISO = "%Y-%m-%d"
TIME_FORMAT_HMS = "%H:%M:%S"
DURATION_ZERO_TEXT = "00h00mn"

# Duplicate detection tolerances (seconds)
MATCH_OFFSET_LIMIT = 300
MATCH_WRAP_LIMIT = 360
MATCH_DURATION_LIMIT = 180

# Logbook schema
LOGBOOK_TABLE = "Vol"
LOGBOOK_SQLITE_MAGIC = "SQLite format 3"

# GPSDump device models
GPS_MODEL_FLYMASTER = "flysd"
GPS_MODEL_FLYMASTER_OLD = "flyold"
GPS_MODEL_FLYTEC_20 = "fly20"
GPS_MODEL_FLYTEC_15 = "fly15"

GPS_MODEL_NAMES = {
    GPS_MODEL_FLYTEC_20: "Flytec 20/30 Compeo",
    GPS_MODEL_FLYTEC_15: "Flytec 6015 / Brau IQ basic",
}

# GPSDump switches common to every Windows call
GPSDUMP_WIN_NO_WINDOW = "/win=0"
GPSDUMP_WIN_EXIT = "/exit"
GPSDUMP_WIN_OVERWRITE = "/overwrite"
GPSDUMP_WIN_NOTIFY = "/notify="
GPSDUMP_LIST_FILE = "gpslist.txt"
GPSDUMP_TRACK_FILE = "gpsdump.igc"

# Configuration
CONFIG_SECTION_DEFAULTS = "Defaults"
CONFIG_FILE_NAMES = ('igcimport.conf', 'igcimport.ini')
DEFAULT_UNKNOWN_TEXT = "UNKNOWN"
DEFAULT_NA_TEXT = "N/A"
