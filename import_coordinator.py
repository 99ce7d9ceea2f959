#!/usr/bin/env python3
"""
Ingestion runs for the flight importer

The coordinator drives one run at a time through
scan -> parse -> offset resolution -> duplicate matching and reports the
result as an IngestionOutcome. Per-file problems are logged and the file is
left out; only a failure of the enumeration or of the instrument itself fails
the run.
"""

import io
import logging
import os
from typing import List, Optional, Sequence, Tuple, Union

from igc_model import (
    DeviceFlight,
    FailureKind,
    FileType,
    GpsModel,
    ImportCandidate,
    IngestionOutcome,
    IngestionState,
    ParsedFlightSummary,
    Platform,
    TrackFile,
)
from igc_parser import IgcFileDetector, IgcMinimalParser
from igc_timezone import TimeZoneResolver
from igc_utils import utcMillis
from igc_constants import (
    GPSDUMP_TRACK_FILE,
    IGC_MIN_DOWNLOAD_LENGTH,
    SCAN_MAX_DEPTH,
    SCAN_SKIP_FOLDERS,
    SCAN_SKIP_PREFIXES,
    TRACK_EXTENSIONS,
)
from gpsdump_decoder import FlightListDecoder
from gpsdump_runner import (
    GpsDumpInvoker,
    SubprocessGpsDump,
    flight_arguments,
    gpsdump_params,
    list_arguments,
    order_token,
    parse_order_token,
    port_argument,
    track_index,
)
from logbook_matcher import apply_verdicts, check_flight_exists, check_flight_list, check_flights
from logbook_store import open_logbook
from usb_folders import locate_flight_folder

# Configure logger
logger = logging.getLogger(__name__)


class TrackScanner:
    """
    Recursive search for IGC and GPX files.
    The root folder is depth 0; folders deeper than max_depth are not entered.
    """

    def __init__(self, max_depth: int = SCAN_MAX_DEPTH):
        self.max_depth = max_depth

    def scan(self, folder: str) -> Tuple[List[TrackFile], List[TrackFile]]:
        """Returns (igc files, gpx files), raises OSError when the folder cannot be listed"""
        igc_files: List[TrackFile] = []
        gpx_files: List[TrackFile] = []
        self._scan(folder, igc_files, gpx_files, 0)
        return igc_files, gpx_files

    def _scan(self, folder: str, igc_files: List[TrackFile], gpx_files: List[TrackFile], depth: int):
        if depth > self.max_depth:
            return

        with os.scandir(folder) as entries:
            for entry in entries:
                if entry.name.startswith(SCAN_SKIP_PREFIXES):
                    continue

                if entry.is_dir():
                    if entry.name not in SCAN_SKIP_FOLDERS:
                        self._scan(entry.path, igc_files, gpx_files, depth + 1)
                elif entry.is_file():
                    extension = os.path.splitext(entry.name)[1].lower().lstrip('.')
                    if extension not in TRACK_EXTENSIONS:
                        continue
                    track = TrackFile(
                        name=entry.name,
                        path=os.path.abspath(entry.path),
                        extension=extension,
                        size=entry.stat().st_size,
                    )
                    (igc_files if extension == 'igc' else gpx_files).append(track)


def flight_sort_key(summary: ParsedFlightSummary) -> int:
    """UTC instant of the first fix"""
    return utcMillis(summary.date_iso, summary.start_time_utc)


class IngestionCoordinator:
    """
    Runs folder, USB and serial instrument imports.
    Public operations return an IngestionOutcome and never raise.
    """

    def __init__(self, db_path: Optional[str] = None,
                 platform: Union[Platform, str, None] = None,
                 invoker: Optional[GpsDumpInvoker] = None,
                 resolver: Optional[TimeZoneResolver] = None,
                 temp_dir: Optional[str] = None,
                 max_depth: int = SCAN_MAX_DEPTH):
        self.db_path = db_path
        self.platform = platform
        self.invoker = invoker
        self.resolver = resolver or TimeZoneResolver()
        self.temp_dir = temp_dir or '.'
        self.scanner = TrackScanner(max_depth)
        self.parser = IgcMinimalParser()
        self.decoder = FlightListDecoder()
        self.state = IngestionState.IDLE
        self.history: List[IngestionState] = [IngestionState.IDLE]

    @classmethod
    def from_config(cls, config) -> 'IngestionCoordinator':
        """Coordinator running the GPSDump executable named by a Config"""
        # The Linux build reports through stdout whatever its exit status
        invoker = SubprocessGpsDump(config.gpsdump_path, timeout=config.gpsdump.timeout,
                                    check_exit=config.platform != Platform.LINUX)
        return cls(
            db_path=config.database,
            platform=config.platform,
            invoker=invoker,
            temp_dir=config.gpsdump.temp_dir,
            max_depth=config.scan.max_depth,
        )

    def _enter(self, state: IngestionState):
        logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _start(self):
        self.state = IngestionState.IDLE
        self.history = [IngestionState.IDLE]

    def _done(self, message: str, **results) -> IngestionOutcome:
        self._enter(IngestionState.DONE)
        return IngestionOutcome(success=True, state=self.state, message=message, **results)

    def _fail(self, failure: FailureKind, message: str, **results) -> IngestionOutcome:
        logger.error(message)
        self._enter(IngestionState.FAILED)
        return IngestionOutcome(success=False, state=self.state, message=message,
                                failure=failure, **results)

    def _resolve_platform(self) -> Optional[Platform]:
        if isinstance(self.platform, Platform):
            return self.platform
        try:
            return Platform(self.platform)
        except ValueError:
            return None

    # Folder import

    def _scan(self, folder: str) -> Union[IngestionOutcome, Tuple[List[TrackFile], List[TrackFile]]]:
        self._enter(IngestionState.SCANNING)
        if not folder or not os.path.isdir(folder):
            return self._fail(FailureKind.FOLDER_NOT_FOUND, f"Folder not found: {folder}")
        try:
            igc_files, gpx_files = self.scanner.scan(folder)
        except OSError as e:
            return self._fail(FailureKind.SCAN_ERROR, f"Error scanning {folder}: {e}")

        logger.info(f"Found {len(igc_files)} IGC and {len(gpx_files)} GPX files in {folder}")
        return igc_files, gpx_files

    def scan_folder(self, folder: str) -> IngestionOutcome:
        """List the track files below a folder"""
        self._start()
        scanned = self._scan(folder)
        if isinstance(scanned, IngestionOutcome):
            return scanned
        igc_files, gpx_files = scanned
        return self._done(f"{len(igc_files) + len(gpx_files)} track files",
                          igc_files=igc_files, gpx_files=gpx_files)

    def parse_tracks(self, files: Sequence[TrackFile]) -> List[ParsedFlightSummary]:
        """Minimal parse of each IGC file, unreadable files are left out"""
        self._enter(IngestionState.PARSING)
        summaries = []
        for track in files:
            try:
                summary = self.parser.parse_file(track.path)
            except (OSError, ValueError) as e:
                logger.warning(f"Error parsing {track.name}: {e}")
                continue
            if summary is None:
                logger.warning(f"Skipping {track.name}: no date header or fix record")
                continue
            summary.file_name = track.name
            summaries.append(summary)

        logger.info(f"Successfully parsed {len(summaries)}/{len(files)} files")
        return summaries

    def resolve_offsets(self, summaries: Sequence[ParsedFlightSummary]) -> List[ParsedFlightSummary]:
        """Fill the local takeoff time, flights with an impossible date are left out"""
        self._enter(IngestionState.OFFSET_RESOLVING)
        resolved = []
        for summary in summaries:
            try:
                self.resolver.localize(summary)
            except ValueError as e:
                logger.warning(f"Skipping {summary.file_name}: {e}")
                continue
            resolved.append(summary)
        return resolved

    def match(self, summaries: Sequence[ParsedFlightSummary]) -> List[ImportCandidate]:
        """Annotate flights with their logbook verdict, newest first"""
        self._enter(IngestionState.MATCHING)
        results = check_flights(self.db_path, summaries)
        candidates = [
            ImportCandidate(summary=summary, exists=result.exists)
            for summary, result in zip(summaries, results)
        ]
        candidates.sort(key=lambda candidate: flight_sort_key(candidate.summary), reverse=True)
        return candidates

    def import_folder(self, folder: str) -> IngestionOutcome:
        """Full import run over a folder of tracks"""
        self._start()
        scanned = self._scan(folder)
        if isinstance(scanned, IngestionOutcome):
            return scanned
        igc_files, gpx_files = scanned

        summaries = self.resolve_offsets(self.parse_tracks(igc_files))
        candidates = self.match(summaries)

        new_count = sum(1 for candidate in candidates if candidate.to_store)
        return self._done(f"{len(candidates)} flights, {new_count} new",
                          igc_files=igc_files, gpx_files=gpx_files, candidates=candidates)

    def import_usb_device(self, mount_points: Sequence[str], gps_type: str) -> IngestionOutcome:
        """Import the flight folder of a USB instrument"""
        self._start()
        try:
            location = locate_flight_folder(mount_points, gps_type)
        except ValueError as e:
            return self._fail(FailureKind.UNKNOWN_MODEL, str(e))

        if location is None:
            return self._fail(FailureKind.FOLDER_NOT_FOUND, 'No disk or flights folder detected')

        logger.info(f"Importing {gps_type} flights from {location.flights_path}")
        return self.import_folder(location.flights_path)

    # Serial instruments

    def list_device_flights(self, model: Union[GpsModel, str], port: str) -> IngestionOutcome:
        """Query the flight list of a serial instrument and check it against the logbook"""
        self._start()
        platform = self._resolve_platform()
        if platform is None:
            return self._fail(FailureKind.UNSUPPORTED_PLATFORM, f"Unsupported platform: {self.platform}")
        try:
            model = GpsModel(model)
        except ValueError:
            return self._fail(FailureKind.UNKNOWN_MODEL, f"Unknown GPS model: {model}")

        params = gpsdump_params(platform, self.temp_dir)
        gps_argument = params.models[model]
        port_arg = port_argument(platform, port)
        args, output_file = list_arguments(platform, params, gps_argument, port_arg)

        if self.invoker is None:
            return self._fail(FailureKind.GPSDUMP_NOT_FOUND, 'GPSDump not found')

        self._enter(IngestionState.SCANNING)
        response = self.invoker.invoke(args, output_file)
        if not response.ok:
            return self._fail(response.failure, response.message)

        self._enter(IngestionState.PARSING)
        result = self.decoder.decode(response.output, model, platform,
                                     order_token(gps_argument, port_arg, model))
        if result.error:
            return self._fail(FailureKind.NO_RESPONSE, result.error_message, flight_list=result)

        self._enter(IngestionState.MATCHING)
        verdicts = check_flight_list(self.db_path, result.flights)
        result.flights = apply_verdicts(result.flights, verdicts)
        duplicates = sum(1 for duplicate in verdicts.values() if duplicate)
        logger.info(f"{duplicates}/{len(result.flights)} flights already in the logbook")
        return self._done(f"{len(result.flights)} flights, {len(result.flights) - duplicates} new",
                          flight_list=result, verdicts=verdicts)

    def _read_track(self, igc_path: str) -> Optional[str]:
        if not os.path.exists(igc_path):
            return None
        with open(igc_path, 'r', encoding='utf-8', errors='ignore') as track_file:
            return track_file.read()

    def _remove_track(self, igc_path: str):
        if os.path.exists(igc_path):
            try:
                os.remove(igc_path)
            except OSError as e:
                logger.warning(f"Could not delete temp file {igc_path}: {e}")

    def download_device_flight(self, order: str, index: int) -> IngestionOutcome:
        """Download one flight of a serial instrument listed by list_device_flights"""
        self._start()
        platform = self._resolve_platform()
        if platform is None:
            return self._fail(FailureKind.UNSUPPORTED_PLATFORM, f"Unsupported platform: {self.platform}")
        try:
            gps_argument, port_arg, model = parse_order_token(order)
        except ValueError:
            return self._fail(FailureKind.UNKNOWN_MODEL, f"Unknown GPS model in {order}")

        if self.invoker is None:
            return self._fail(FailureKind.GPSDUMP_NOT_FOUND, 'GPSDump not found')

        params = gpsdump_params(platform, self.temp_dir)
        igc_path = os.path.join(self.temp_dir, GPSDUMP_TRACK_FILE)
        self._remove_track(igc_path)
        args = flight_arguments(platform, params, gps_argument, port_arg, igc_path,
                                track_index(platform, model, index))

        self._enter(IngestionState.SCANNING)
        try:
            response = self.invoker.invoke(args)
            if not response.ok:
                return self._fail(response.failure, response.message)

            try:
                igc_text = self._read_track(igc_path)
            except OSError as e:
                return self._fail(FailureKind.NO_RESPONSE, f"Could not read {igc_path}: {e}")
        finally:
            self._remove_track(igc_path)

        if igc_text is None:
            return self._fail(FailureKind.NO_RESPONSE, 'IGC file not created by GPSDump')
        if len(igc_text) < IGC_MIN_DOWNLOAD_LENGTH:
            return self._fail(FailureKind.INVALID_TRACK, 'IGC file is empty or too short')

        self._enter(IngestionState.PARSING)
        if IgcFileDetector.detect_filetype(io.StringIO(igc_text)) != FileType.IGC:
            return self._fail(FailureKind.INVALID_TRACK, 'Downloaded track is not an IGC file')
        summary = self.parser.parse_text(igc_text)
        if summary is None:
            return self._fail(FailureKind.INVALID_TRACK, 'No date header or fix record in downloaded track')

        self._enter(IngestionState.OFFSET_RESOLVING)
        try:
            self.resolver.localize(summary)
        except ValueError as e:
            return self._fail(FailureKind.INVALID_TRACK, f"Invalid track date: {e}")

        self._enter(IngestionState.MATCHING)
        flight = DeviceFlight(summary=summary, igc_text=igc_text, exists=self.check_flight(summary))
        return self._done(f"Flight {index} downloaded", device_flight=flight)

    def check_flight(self, summary: ParsedFlightSummary) -> bool:
        """Exact logbook check of a single flight, False when the logbook is unavailable"""
        logbook = open_logbook(self.db_path)
        if logbook is None:
            return False
        with logbook:
            return check_flight_exists(logbook, summary).exists
