#!/usr/bin/env python3
"""
Flight folder lookup on USB mass-storage instruments

Instruments that mount as a disk keep their tracks in a known folder. Some are
only recognised by extra folders next to it, the XC Tracer by a text file at
the root of the disk. Mount points are supplied by the caller.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

# Configure logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UsbFolders:
    """Folder layout of one instrument type"""
    flights: str
    waypoints: Optional[str] = None
    specials: List[str] = field(default_factory=list)
    txt_prefix: Optional[str] = None


GPS_FOLDERS: Dict[str, UsbFolders] = {
    'sky3': UsbFolders('flights', 'waypoints', ['pilot_profiles', 'flightscreens', 'vario_tones']),
    'xct': UsbFolders('flights', txt_prefix='XC'),
    'connect': UsbFolders('flights', 'waypoints', ['config']),
    'syrusb': UsbFolders('FLIGHT'),
    'rever': UsbFolders('IGC'),
    'sky2': UsbFolders('flights'),
    'oud': UsbFolders('Log'),
    'cpil': UsbFolders('Flights'),
    'elem': UsbFolders('flights'),
    'skydrop': UsbFolders('igc'),
    'vardui': UsbFolders('var'),
    'flynet': UsbFolders('tracks'),
    'sens': UsbFolders('igc'),
}


@dataclass
class UsbLocation:
    """Where the flights of a detected instrument are"""
    usb_path: str
    flights_path: str
    waypoints_path: Optional[str] = None


def find_folder_case_insensitive(base_path: str, folder_name: str) -> Optional[str]:
    """Look for folder_name as written, then lower case, then upper case"""
    for name in (folder_name, folder_name.lower(), folder_name.upper()):
        candidate = os.path.join(base_path, name)
        if os.path.isdir(candidate):
            return candidate
    return None


def _has_xct_marker(usb_path: str, prefix: str) -> bool:
    try:
        names = os.listdir(usb_path)
    except OSError as e:
        logger.error(f"Error reading {usb_path}: {e}")
        return False
    return any(name.lower().endswith('.txt') and name.startswith(prefix) for name in names)


def _check_mount_point(usb_path: str, gps_type: str, folders: UsbFolders) -> Optional[UsbLocation]:
    if folders.txt_prefix:
        if _has_xct_marker(usb_path, folders.txt_prefix):
            logger.info(f"{gps_type} detected on {usb_path}")
            return UsbLocation(usb_path=usb_path, flights_path=usb_path)
        return None

    flights_path = find_folder_case_insensitive(usb_path, folders.flights)
    if not flights_path:
        return None

    if folders.specials:
        if not any(os.path.isdir(os.path.join(usb_path, special)) for special in folders.specials):
            logger.debug(f"No {gps_type} marker folder on {usb_path}")
            return None

    waypoints_path = None
    if folders.waypoints:
        waypoints_path = find_folder_case_insensitive(usb_path, folders.waypoints)

    return UsbLocation(usb_path=usb_path, flights_path=flights_path, waypoints_path=waypoints_path)


def locate_flight_folder(mount_points: Iterable[str], gps_type: str) -> Optional[UsbLocation]:
    """
    Check mount points in order and return the first one holding the
    flight folder of gps_type. Raises ValueError for an unknown type.
    """
    folders = GPS_FOLDERS.get(gps_type)
    if folders is None:
        raise ValueError(f"Unknown GPS type: {gps_type}")

    for usb_path in mount_points:
        logger.debug(f"Checking {usb_path} for {gps_type}")
        location = _check_mount_point(usb_path, gps_type, folders)
        if location:
            return location

    logger.warning(f"No disk or flights folder detected for {gps_type}")
    return None
