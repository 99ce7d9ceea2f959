#!/usr/bin/env python3
"""
Text reports for the flight importer
"""

from typing import Dict, List, Optional, Sequence

from igc_model import DeviceFlight, FlightListResult, ImportCandidate, ParsedFlightSummary
from igc_constants import DEFAULT_NA_TEXT, DEFAULT_UNKNOWN_TEXT


def _status(exists: bool) -> str:
    return 'EXISTS' if exists else 'NEW'


def flightLine(summary: ParsedFlightSummary, exists: bool) -> str:
    """One line describing a parsed flight"""
    takeoff = summary.takeoff_time_local or summary.start_time_utc or DEFAULT_NA_TEXT
    pilot = summary.pilot_name or DEFAULT_UNKNOWN_TEXT
    glider = summary.glider_name or DEFAULT_UNKNOWN_TEXT
    return (f"{summary.date_iso or DEFAULT_NA_TEXT}  {takeoff[:5]:<5}  {summary.duration_str}  "
            f"{pilot:<20}  {glider:<20}  {_status(exists)}")


def flightSummary(candidates: Sequence[ImportCandidate], title: str = 'Flights') -> str:
    """Table of import candidates, one line per flight"""
    new_count = sum(1 for candidate in candidates if candidate.to_store)
    heading = f"{title} - {len(candidates)} found, {new_count} new"
    underline = '\n' + ('-' * len(heading))

    lines = [flightLine(candidate.summary, candidate.exists) for candidate in candidates]
    if not lines:
        return heading + underline
    return heading + underline + '\n' + '\n'.join(lines)


def flightListReport(result: FlightListResult, verdicts: Optional[Dict[int, bool]] = None) -> str:
    """Device banner, flight list with duplicate status and unrecognized lines"""
    if result.error:
        return f"GPSDump error: {result.error_message or DEFAULT_UNKNOWN_TEXT}"

    verdicts = verdicts or {}
    heading = f"{result.model or DEFAULT_UNKNOWN_TEXT} - {len(result.flights)} flights"
    underline = '\n' + ('-' * len(heading))

    banner = ''
    if result.serial_number or result.firmware_version:
        banner = (f"\n  Serial: {result.serial_number or DEFAULT_NA_TEXT}"
                  f"  Firmware: {result.firmware_version or DEFAULT_NA_TEXT}")

    lines: List[str] = []
    for index, entry in enumerate(result.flights):
        lines.append(f"{index:>3}  {entry.date:<10}  {entry.takeoff_time:<8}  "
                     f"{entry.duration_str:<8}  {_status(verdicts.get(index, False))}")

    diagnostics = ''
    if result.unrecognized_lines:
        diagnostics = '\nUnrecognized:\n' + '\n'.join(f"  {line}" for line in result.unrecognized_lines)

    body = '\n' + '\n'.join(lines) if lines else ''
    return heading + underline + banner + body + diagnostics


def deviceFlightSummary(flight: DeviceFlight) -> str:
    """Summary of a single flight downloaded from an instrument"""
    summary = flight.summary
    heading = (f"{summary.date_iso} {summary.takeoff_time_local[:5]} "
               f"({summary.duration_str}) {_status(flight.exists)}")
    underline = '\n' + ('-' * len(heading))
    return f'''{heading}{underline}
   Pilot: {summary.pilot_name or DEFAULT_UNKNOWN_TEXT}
  Glider: {summary.glider_name or DEFAULT_UNKNOWN_TEXT}
 Takeoff: {summary.latitude:.6f}, {summary.longitude:.6f} {summary.altitude} m
     UTC: {summary.start_time_utc} (offset {summary.utc_offset_minutes:+d} min)'''
