#!/usr/bin/env python3
"""
IGC / GPSDump flight importer

Finds flights in track folders, on USB instruments or on serial instruments
through GPSDump, and reports which of them are not yet in the logbook.

Usage:
    python igcimport.py [-c config] [-d logbook.db] scan FOLDER
    python igcimport.py usb MOUNT [MOUNT ...] --type sky3
    python igcimport.py device-list --model flysd --port /dev/ttyACM0
    python igcimport.py device-flight --order "-gyn,-ca0,flysd" --index 0
"""

import argparse
import logging
import sys

from igc_config import Config
from igc_summary import deviceFlightSummary, flightListReport, flightSummary
from import_coordinator import IngestionCoordinator

# Configure logging
logger = logging.getLogger('igcimport')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Find new flights in IGC folders and GPS instruments',
        epilog='Example: python igcimport.py -d logbook.db scan ~/Tracks'
    )

    parser.add_argument('-c', '--config', default=None, help='Path to config file')
    parser.add_argument('-d', '--database', default=None, help='Path to the SQLite logbook')
    parser.add_argument('-p', '--platform', default=None, help='GPSDump build: win, mac32, mac64 or linux')
    parser.add_argument('-g', '--gpsdump', default=None, help='Path to the GPSDump executable')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')

    commands = parser.add_subparsers(dest='command', required=True)

    scan = commands.add_parser('scan', help='Import the tracks of a folder')
    scan.add_argument('folder', help='Folder searched for IGC and GPX files')

    usb = commands.add_parser('usb', help='Import the tracks of a USB instrument')
    usb.add_argument('mounts', nargs='+', help='Mount points to check')
    usb.add_argument('-t', '--type', required=True, dest='gps_type', help='Instrument type, e.g. sky3, xct, syrusb')

    device_list = commands.add_parser('device-list', help='List the flights of a serial instrument')
    device_list.add_argument('-m', '--model', required=True, help='flysd, flyold, fly20 or fly15')
    device_list.add_argument('-P', '--port', required=True, help='Serial port, e.g. COM3 or /dev/ttyUSB0')

    device_flight = commands.add_parser('device-flight', help='Download one flight of a serial instrument')
    device_flight.add_argument('-o', '--order', required=True, help='Order token printed by device-list')
    device_flight.add_argument('-i', '--index', required=True, type=int, help='Flight index in the list')

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    config = Config(args)
    coordinator = IngestionCoordinator.from_config(config)

    if args.command == 'scan':
        outcome = coordinator.import_folder(args.folder)
    elif args.command == 'usb':
        outcome = coordinator.import_usb_device(args.mounts, args.gps_type)
    elif args.command == 'device-list':
        outcome = coordinator.list_device_flights(args.model, args.port)
    else:
        outcome = coordinator.download_device_flight(args.order, args.index)

    if not outcome.success:
        logger.error(f"{outcome.message} ({outcome.failure_text})")
        return 1

    if outcome.device_flight:
        print(deviceFlightSummary(outcome.device_flight))
    elif outcome.flight_list:
        print(flightListReport(outcome.flight_list, outcome.verdicts))
        if outcome.flight_list.flights:
            print(f"Order: {outcome.flight_list.flights[0].device_order}")
    else:
        print(flightSummary(outcome.candidates))
        if outcome.gpx_files:
            logger.info(f"{len(outcome.gpx_files)} GPX files not decoded")

    logger.info(outcome.message)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except FileNotFoundError as e:
        logger.critical(f"File not found: {e.filename}")
        sys.exit(3)
    except ValueError as e:
        logger.critical(f"Invalid input: {e}")
        sys.exit(2)
    except Exception as e:
        logger.critical(f"Unexpected error: {e}", exc_info=True)
        sys.exit(1)
