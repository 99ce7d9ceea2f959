#!/usr/bin/env python3
"""
GPSDump flight list decoder

GPSDump prints the flight list of a serial instrument in a different text
layout depending on the platform build and, for the Flytec 6015, on the
device. Each layout has its own decoding function; the (model, platform) pair
selects which one runs.

Lines that match no pattern are kept as diagnostics with their 0-based index.
A single bad line never stops decoding.
"""

import logging
import re
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from igc_model import (
    FlightListResult,
    GpsDumpFlightEntry,
    GpsModel,
    Platform,
    UnrecognizedLine,
)
from igc_constants import GPS_MODEL_NAMES

# Configure logger
logger = logging.getLogger(__name__)

LINE_SPLIT_RE = re.compile(r'\r?\n')

# 1; 21.06.25; 14:38:50;        1; 00:17:45;
SEMICOLON_FLIGHT_RE = re.compile(r'([^;]*);([^;]*);([^;]*);([^;]*);([^;]*);')

# Product: Flymaster GpsSD  SN02988  SW2.03h
PRODUCT_RE = re.compile(r'(Product:)[ ]{1,}(\w*)[ ]{1,}(\S*)[ ]{1,}(\S*)[ ]{1,}(\S*)')
# 1   23.07.20   06:08:16   01:21:57
LABELED_FLIGHT_RE = re.compile(
    r'((\d{1,2}\.){2}\d{2}(\d{2})?)[ ]{1,}'
    r'((\d{1,2}:){2}\d{2}(\d{2})?)[ ]{1,}'
    r'((\d{1,2}:){2}\d{2}(\d{2})?)'
)

# 1 Flight date 29.07.22, time 06:00:54, duration 00:00:34
PROSE_FLIGHT_RE = re.compile(
    r'Flight date ([0-9]+(\.[0-9]+)+), time ([0-9]+(:[0-9]+)+), duration ([0-9]+(:[0-9]+)+)'
)

# 2022.06.18,13:06:13,1:25:54
COMMA_FLIGHT_RE = re.compile(
    r'((\d{1,2}\.){2}\d{2}(\d{2})?)[,]{1,}'
    r'((\d{1,2}:){2}\d{2}(\d{2})?)[,]{1,}'
    r'((\d{1,2}:){2}\d{2}(\d{2})?)'
)


class Grammar(Enum):
    SEMICOLON = 'semicolon'
    LABELED = 'labeled'
    PROSE = 'prose'
    COMMA = 'comma'


def select_grammar(model: GpsModel, platform: Platform) -> Grammar:
    """Pick the output layout GPSDump uses for a model on a platform"""
    if model == GpsModel.FLYTEC_15 and platform in (Platform.MAC64, Platform.LINUX):
        return Grammar.SEMICOLON
    if platform == Platform.WIN:
        return Grammar.COMMA
    if platform == Platform.MAC32:
        return Grammar.PROSE
    return Grammar.LABELED


def model_display_name(model: str) -> str:
    """Human readable name of a GPSDump model code, unknown codes pass through"""
    return GPS_MODEL_NAMES.get(model, model)


def decode_semicolon(lines: List[str], order: str, result: FlightListResult) -> None:
    """Flytec 6015 on mac64/linux: date field is YY.MM.DD"""
    for i, line in enumerate(lines):
        match = SEMICOLON_FLIGHT_RE.search(line)
        if not match:
            result.unrecognized_lines.append(UnrecognizedLine(i, line))
            continue

        raw_date = match.group(2)
        parts = raw_date.split('.')
        flight_date = raw_date
        if len(parts) == 3:
            flight_date = f"{parts[2].strip()}.{parts[1].strip()}.{parts[0].strip()}"

        result.flights.append(GpsDumpFlightEntry(
            date=flight_date,
            takeoff_time=match.group(3).strip(),
            duration_str=match.group(5).strip(),
            device_order=order,
        ))


def decode_labeled(lines: List[str], order: str, result: FlightListResult) -> None:
    """mac64/linux builds: product banner followed by date/takeoff/duration columns"""
    for i, line in enumerate(lines):
        product = PRODUCT_RE.search(line)
        if product:
            result.manufacturer = product.group(2)
            result.model = f"{product.group(2)} {product.group(3)}"
            result.serial_number = product.group(4)
            result.firmware_version = product.group(5)
            continue

        match = LABELED_FLIGHT_RE.search(line)
        if match:
            result.flights.append(GpsDumpFlightEntry(
                date=match.group(1),
                takeoff_time=match.group(4),
                duration_str=match.group(7),
                device_order=order,
            ))
        else:
            result.unrecognized_lines.append(UnrecognizedLine(i, line))


def decode_prose(lines: List[str], order: str, result: FlightListResult) -> None:
    """mac32 build: one sentence per flight, first line is a header"""
    for i, line in enumerate(lines[1:], start=1):
        match = PROSE_FLIGHT_RE.search(line)
        if match:
            result.flights.append(GpsDumpFlightEntry(
                date=match.group(1),
                takeoff_time=match.group(3),
                duration_str=match.group(5),
                device_order=order,
            ))
        else:
            result.unrecognized_lines.append(UnrecognizedLine(i, line))


def decode_comma(lines: List[str], order: str, result: FlightListResult) -> None:
    """
    Windows build: comma separated, first line is a header.
    The matched date keeps two-digit fields only (2022.06.18 -> 22.06.18) and
    is reordered by slicing to 18.06.22. A wider field would be misread.
    """
    for i, line in enumerate(lines[1:], start=1):
        match = COMMA_FLIGHT_RE.search(line)
        if match:
            raw_date = match.group(1)
            result.flights.append(GpsDumpFlightEntry(
                date=raw_date[6:] + raw_date[2:6] + raw_date[0:2],
                takeoff_time=match.group(4),
                duration_str=match.group(7),
                device_order=order,
            ))
        else:
            result.unrecognized_lines.append(UnrecognizedLine(i, line))


GRAMMAR_DECODERS: Dict[Grammar, Callable[[List[str], str, FlightListResult], None]] = {
    Grammar.SEMICOLON: decode_semicolon,
    Grammar.LABELED: decode_labeled,
    Grammar.PROSE: decode_prose,
    Grammar.COMMA: decode_comma,
}


class FlightListDecoder:
    """
    Turns raw GPSDump output into a FlightListResult.
    """

    @staticmethod
    def split_lines(output: Union[str, bytes]) -> List[str]:
        if isinstance(output, bytes):
            output = output.decode('utf-8', errors='ignore')
        return LINE_SPLIT_RE.split(output.strip())

    def decode(self, output: Optional[Union[str, bytes]], model: GpsModel,
               platform: Platform, order: str) -> FlightListResult:
        result = FlightListResult(model=model_display_name(model.value))

        if not output or not output.strip():
            result.error = True
            result.error_message = 'Empty response from GPSDump'
            logger.error(result.error_message)
            return result

        lines = self.split_lines(output)
        grammar = select_grammar(model, platform)
        logger.debug(f"Decoding {len(lines)} lines for {model.value} on {platform.value} ({grammar.value})")

        GRAMMAR_DECODERS[grammar](lines, order, result)

        logger.info(f"Decoded {len(result.flights)} flights, {len(result.unrecognized_lines)} other lines")
        return result


# Public function

def decodeFlightList(output: Optional[Union[str, bytes]], model: GpsModel,
                     platform: Platform, order: str) -> FlightListResult:
    """Decode GPSDump flight list output"""
    return FlightListDecoder().decode(output, model, platform, order)
