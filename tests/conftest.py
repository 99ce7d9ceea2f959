"""
Pytest configuration and shared fixtures for the flight importer tests
"""
import sqlite3

import pytest

from igc_timezone import Resolved, TimeZoneResolver
from gpsdump_runner import GpsDumpInvoker, GpsDumpResponse


@pytest.fixture
def sample_igc_content():
    """Sample IGC file content for testing"""
    return """AXCT123 FLIGHT RECORDER
HFDTEDATE:180624,01
HFPLTPILOTINCHARGE:JOHN_DOE
HFGTYGLIDERTYPE:ADVANCE_SIGMA_11
HFGIDGLIDERID:
B1023454553123N00612345EA0123401256
B1023504553130N00612350EA0124001262
B1200004553500N00612800EA0180001820
B1405104554000N00613000EA0098001000
"""


@pytest.fixture
def sample_igc_file(tmp_path, sample_igc_content):
    """Create a temporary IGC file for testing"""
    igc_file = tmp_path / "test_flight.igc"
    igc_file.write_text(sample_igc_content)
    return igc_file


@pytest.fixture
def sample_config_content():
    """Sample configuration file content"""
    return """[Defaults]
Database = /data/logbook.db
Platform = mac64
GpsDumpDir = /opt/gpsdump
TempDir = /tmp/igcimport
ScanDepth = 2
GpsDumpTimeout = 30
"""


@pytest.fixture
def sample_config_file(tmp_path, sample_config_content):
    """Create a temporary config file for testing"""
    config_file = tmp_path / "test_config.conf"
    config_file.write_text(sample_config_content)
    return config_file


LOGBOOK_SCHEMA = """CREATE TABLE Vol (
    V_ID INTEGER PRIMARY KEY,
    V_Date TEXT,
    V_Duree INTEGER,
    V_LatDeco REAL,
    V_LongDeco REAL
)"""


@pytest.fixture
def make_logbook(tmp_path):
    """Factory creating a SQLite logbook holding (V_Date, V_Duree) rows"""
    def _make(rows, name="logbook.db"):
        db_path = tmp_path / name
        connection = sqlite3.connect(str(db_path))
        connection.execute(LOGBOOK_SCHEMA)
        connection.executemany(
            "INSERT INTO Vol (V_Date, V_Duree, V_LatDeco, V_LongDeco) VALUES (?, ?, 45.88, 6.2)",
            rows
        )
        connection.commit()
        connection.close()
        return str(db_path)
    return _make


@pytest.fixture
def sample_logbook(make_logbook):
    """Logbook holding the sample IGC flight at local time 12:23:45"""
    return make_logbook([
        ("2024-06-18 12:23:45", 13285),
        ("2024-06-17 09:10:00", 3600),
    ])


class FixedOffsetResolver(TimeZoneResolver):
    """Resolver answering the same offset everywhere"""

    def __init__(self, offset_minutes=120):
        super().__init__()
        self.fixed_offset = offset_minutes

    def resolve(self, latitude, longitude, utc_millis):
        return Resolved(self.fixed_offset)


@pytest.fixture
def fixed_resolver():
    """Resolver with a constant +02:00 offset"""
    return FixedOffsetResolver(120)


class CannedGpsDump(GpsDumpInvoker):
    """Invoker returning canned output, optionally writing a track file"""

    def __init__(self, output=None, failure=None, message='', track_path=None, track_text=None):
        self.output = output
        self.failure = failure
        self.message = message
        self.track_path = track_path
        self.track_text = track_text
        self.calls = []

    def invoke(self, args, output_file=None):
        self.calls.append((list(args), output_file))
        if self.failure:
            return GpsDumpResponse(failure=self.failure, message=self.message)
        if self.track_path and self.track_text is not None:
            with open(self.track_path, 'w', encoding='utf-8') as f:
                f.write(self.track_text)
        return GpsDumpResponse(output=self.output)


@pytest.fixture
def canned_gpsdump():
    """Factory for canned GPSDump invokers"""
    return CannedGpsDump


@pytest.fixture
def mock_cli_args(sample_config_file, tmp_path):
    """Mock command-line arguments for testing"""
    class MockArgs:
        def __init__(self):
            self.config = str(sample_config_file)
            self.database = None
            self.platform = None
            self.gpsdump = None
            self.verbose = False

    return MockArgs()
