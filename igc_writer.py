#!/usr/bin/env python3
"""
IGC record writer for the flight importer

Encodes fix records and the header lines the minimal reader consumes. Used to
build sample tracks in the exact layout the reader expects; the import paths
only read tracks and never call it.
"""

from datetime import date
from typing import Iterable, Optional, TextIO, Tuple

from igc_constants import (
    IGC_HEADER_DATE,
    IGC_HEADER_GLIDER_TYPE,
    IGC_HEADER_PILOT,
    IGC_RECORD_MANUFACTURER,
    IGC_RECORD_POSITION,
    SECONDS_PER_MINUTE,
)

# Thousandths of a minute per degree
MINUTE_THOUSANDTHS_PER_DEGREE = SECONDS_PER_MINUTE * 1000


class IgcWriter:
    """
    Formats IGC records.
    Coordinates are written as degrees and minutes with three decimals.
    """

    @staticmethod
    def format_coordinate(value: float, degree_digits: int, positive: str, negative: str) -> str:
        """DDMMmmmH / DDDMMmmmH with minutes rounded to thousandths"""
        hemisphere = negative if value < 0 else positive
        magnitude = abs(value)
        degrees = int(magnitude)
        thousandths = round((magnitude - degrees) * MINUTE_THOUSANDTHS_PER_DEGREE)
        if thousandths >= MINUTE_THOUSANDTHS_PER_DEGREE:
            degrees += 1
            thousandths -= MINUTE_THOUSANDTHS_PER_DEGREE
        return f"{degrees:0{degree_digits}d}{thousandths:05d}{hemisphere}"

    @staticmethod
    def format_altitude(meters: int) -> str:
        """5 digits, or a minus sign and 4 digits"""
        return f"{int(meters):05d}"

    @classmethod
    def format_fix_record(cls, time: str, latitude: float, longitude: float,
                          gnss_altitude: int, pressure_altitude: Optional[int] = None,
                          valid: bool = True) -> str:
        """Build a B record from an HH:MM:SS time and decimal degrees"""
        if pressure_altitude is None:
            pressure_altitude = gnss_altitude

        return ''.join([
            IGC_RECORD_POSITION,
            time.replace(':', ''),
            cls.format_coordinate(latitude, 2, 'N', 'S'),
            cls.format_coordinate(longitude, 3, 'E', 'W'),
            'A' if valid else 'V',
            cls.format_altitude(pressure_altitude),
            cls.format_altitude(gnss_altitude),
        ])

    @staticmethod
    def format_header(code: str, label: str, value: str) -> str:
        """HF header line such as HFPLTPILOTINCHARGE:John Doe"""
        return f"HF{code}{label}:{value}"

    @staticmethod
    def format_date_header(flight_date: date, flight_number: Optional[int] = None) -> str:
        """HFDTEDATE:DDMMYY[,NN]"""
        line = f"HF{IGC_HEADER_DATE}DATE:{flight_date.strftime('%d%m%y')}"
        if flight_number is not None:
            line += f",{flight_number:02d}"
        return line

    def write_igc(self, igc_file: TextIO, flight_date: date,
                  fixes: Iterable[Tuple[str, float, float, int]],
                  pilot: str = '', glider: str = '', manufacturer: str = 'XXX') -> None:
        """
        Write a minimal IGC track.
        fixes are (HH:MM:SS, latitude, longitude, gnss altitude) tuples.
        """
        lines = [
            f"{IGC_RECORD_MANUFACTURER}{manufacturer}",
            self.format_date_header(flight_date),
            self.format_header(IGC_HEADER_PILOT, 'PILOTINCHARGE', pilot),
            self.format_header(IGC_HEADER_GLIDER_TYPE, 'GLIDERTYPE', glider),
        ]
        for time, latitude, longitude, altitude in fixes:
            lines.append(self.format_fix_record(time, latitude, longitude, altitude))

        igc_file.write('\r\n'.join(lines) + '\r\n')


# Public function

def formatBRecord(time: str, latitude: float, longitude: float, gnss_altitude: int,
                  pressure_altitude: Optional[int] = None) -> str:
    """Build a single B record"""
    return IgcWriter.format_fix_record(time, latitude, longitude, gnss_altitude, pressure_altitude)
