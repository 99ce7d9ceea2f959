"""
Tests for igc_model.py data models
"""
import pytest
from dataclasses import FrozenInstanceError
from igc_model import (
    FileType,
    Platform,
    GpsModel,
    FailureKind,
    IngestionState,
    TrackFile,
    ParsedFlightSummary,
    GpsDumpFlightEntry,
    UnrecognizedLine,
    FlightListResult,
    ImportCandidate,
    IngestionOutcome
)


class TestEnums:
    """Tests for enum values"""

    def test_file_types(self):
        assert FileType.UNKNOWN.value == 0
        assert FileType.IGC.value == 1
        assert FileType.GPX.value == 2

    def test_platform_from_name(self):
        assert Platform('win') == Platform.WIN
        assert Platform('mac32') == Platform.MAC32
        assert Platform('mac64') == Platform.MAC64
        assert Platform('linux') == Platform.LINUX

    def test_gps_model_codes(self):
        assert GpsModel('flysd') == GpsModel.FLYMASTER
        assert GpsModel('flyold') == GpsModel.FLYMASTER_OLD
        assert GpsModel('fly20') == GpsModel.FLYTEC_20
        assert GpsModel('fly15') == GpsModel.FLYTEC_15

    def test_unknown_model(self):
        with pytest.raises(ValueError):
            GpsModel('garmin')

    def test_failure_kinds_are_distinct(self):
        assert FailureKind.GPSDUMP_NOT_FOUND != FailureKind.GPSDUMP_ERROR
        assert len({kind.value for kind in FailureKind}) == len(FailureKind)


class TestParsedFlightSummary:
    """Tests for ParsedFlightSummary"""

    def test_defaults(self):
        summary = ParsedFlightSummary()
        assert summary.is_valid is False
        assert summary.duration_seconds == 0
        assert summary.utc_offset_minutes == 0

    def test_duration_str(self):
        summary = ParsedFlightSummary(duration_seconds=13285)
        assert summary.duration_str == "03h41mn"


class TestImmutableRecords:
    """Tests for frozen records"""

    def test_track_file_is_frozen(self):
        track = TrackFile(name="a.igc", path="/tmp/a.igc", extension="igc", size=10)
        with pytest.raises(FrozenInstanceError):
            track.size = 20

    def test_flight_entry_is_new_by_default(self):
        entry = GpsDumpFlightEntry(date="23.07.20", takeoff_time="06:08:16",
                                   duration_str="01:21:57", device_order="order")
        assert entry.is_new is True
        with pytest.raises(FrozenInstanceError):
            entry.is_new = False

    def test_unrecognized_line_str(self):
        assert str(UnrecognizedLine(2, "garbage")) == "Line 2: garbage"


class TestResults:
    """Tests for result containers"""

    def test_flight_list_result_defaults(self):
        result = FlightListResult()
        assert result.flights == []
        assert result.unrecognized_lines == []
        assert result.error is False
        assert result.manufacturer is None

    def test_candidate_to_store(self):
        valid = ParsedFlightSummary(is_valid=True)
        assert ImportCandidate(summary=valid).to_store is True
        assert ImportCandidate(summary=valid, exists=True).to_store is False
        assert ImportCandidate(summary=ParsedFlightSummary()).to_store is False

    def test_outcome_failure_text(self):
        ok = IngestionOutcome(success=True, state=IngestionState.DONE)
        failed = IngestionOutcome(success=False, state=IngestionState.FAILED,
                                  failure=FailureKind.FOLDER_NOT_FOUND)
        assert ok.failure_text == "N/A"
        assert failed.failure_text == "folder_not_found"
