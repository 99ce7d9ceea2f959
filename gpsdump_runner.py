#!/usr/bin/env python3
"""
GPSDump invocation for the flight importer

GPSDump is an external command line tool talking to serial instruments. This
module knows its per-platform switches, builds the argument vectors and runs
it through a replaceable invoker so decoding can be tested on canned output.
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from igc_model import FailureKind, GpsModel, Platform
from igc_constants import (
    GPSDUMP_LIST_FILE,
    GPSDUMP_WIN_EXIT,
    GPSDUMP_WIN_NO_WINDOW,
    GPSDUMP_WIN_NOTIFY,
    GPSDUMP_WIN_OVERWRITE,
)

# Configure logger
logger = logging.getLogger(__name__)

GPSDUMP_EXECUTABLES = {
    Platform.WIN: 'GpsDump542.exe',
    Platform.MAC32: 'gpsdumpMac32_54',
    Platform.MAC64: 'gpsdumpMac64_14',
    Platform.LINUX: 'gpsdumpLin64_28',
}


@dataclass(frozen=True)
class GpsDumpParams:
    """GPSDump switches for one platform build"""
    executable: str
    models: Dict[GpsModel, str]
    list: str
    track_file: str
    track: str
    list_file: Optional[str] = None


def gpsdump_params(platform: Platform, temp_dir: str) -> GpsDumpParams:
    """Switch table of the GPSDump build used on a platform"""
    if platform == Platform.WIN:
        return GpsDumpParams(
            executable=GPSDUMP_EXECUTABLES[platform],
            models={
                GpsModel.FLYMASTER: '/gps=flymaster',
                GpsModel.FLYMASTER_OLD: '/gps=flymasterold',
                GpsModel.FLYTEC_20: '/gps=iqcompeo',
                GpsModel.FLYTEC_15: '/gps=iqbasic',
            },
            list='/flightlist',
            list_file=os.path.join(temp_dir, GPSDUMP_LIST_FILE),
            track_file='/igc_log=',
            track='/track=',
        )
    if platform == Platform.MAC32:
        return GpsDumpParams(
            executable=GPSDUMP_EXECUTABLES[platform],
            models={
                GpsModel.FLYMASTER: '/gps=flymaster',
                GpsModel.FLYMASTER_OLD: '/gps=flymasterold',
                GpsModel.FLYTEC_20: '/gps=flytec',
                GpsModel.FLYTEC_15: '/gps=iqbasic',
            },
            list='/flightlist',
            track_file='/name=',
            track='/track=',
        )

    unix_models = {
        GpsModel.FLYMASTER: '-gyn',
        GpsModel.FLYMASTER_OLD: '-gy',
        GpsModel.FLYTEC_20: '-gc',
        GpsModel.FLYTEC_15: '-giq',
    }
    return GpsDumpParams(
        executable=GPSDUMP_EXECUTABLES[platform],
        models=unix_models,
        list='-f0',
        list_file='-lnomatter.txt',
        track_file='-l',
        track='-f',
    )


def port_argument(platform: Platform, port: str) -> str:
    """Translate a serial port name into the GPSDump port switch"""
    if platform == Platform.WIN:
        return '/com=' + port.replace('COM', '')
    if platform in (Platform.MAC32, Platform.MAC64):
        return port.replace('/dev/tty', '-cu')

    sub_port = port[:9] if len(port) > 8 else 'ca0'
    if sub_port == '/dev/ttyA':
        return port.replace('/dev/ttyACM', '-ca')
    if sub_port == '/dev/ttyS':
        return port.replace('/dev/ttyS', '-c')
    if sub_port == '/dev/ttyU':
        return port.replace('/dev/ttyUSB', '-cu')
    return port


def order_token(gps_argument: str, port_arg: str, model: GpsModel) -> str:
    """Token identifying device, port and model, passed back to download a flight"""
    return f"{gps_argument},{port_arg},{model.value}"


def parse_order_token(token: str) -> Tuple[str, str, GpsModel]:
    """Split an order token, raises ValueError for unknown models"""
    gps_argument, port_arg, model = token.split(',')[:3]
    return gps_argument, port_arg, GpsModel(model)


def list_arguments(platform: Platform, params: GpsDumpParams,
                   gps_argument: str, port_arg: str) -> Tuple[List[str], Optional[str]]:
    """
    Argument vector of a flight list query.
    Returns (args, output file) where the output file is None when GPSDump prints to stdout.
    """
    if platform == Platform.WIN:
        args = [GPSDUMP_WIN_NO_WINDOW, port_arg, gps_argument, params.list,
                GPSDUMP_WIN_NOTIFY + params.list_file, GPSDUMP_WIN_OVERWRITE, GPSDUMP_WIN_EXIT]
        return args, params.list_file
    if platform == Platform.MAC32:
        return [gps_argument, port_arg, params.list], None
    return [gps_argument, port_arg, params.list_file, params.list], None


def track_index(platform: Platform, model: GpsModel, list_index: int) -> int:
    """GPSDump track numbers are 1-based except for Flytec/old Flymaster on Windows"""
    if model == GpsModel.FLYMASTER or platform != Platform.WIN:
        return list_index + 1
    return list_index


def flight_arguments(platform: Platform, params: GpsDumpParams, gps_argument: str,
                     port_arg: str, igc_path: str, index: int) -> List[str]:
    """Argument vector downloading one flight into igc_path"""
    file_arg = params.track_file + igc_path
    index_arg = params.track + str(index)
    if platform == Platform.WIN:
        return [GPSDUMP_WIN_NO_WINDOW, port_arg, gps_argument, file_arg, index_arg, GPSDUMP_WIN_EXIT]
    if platform == Platform.MAC32:
        return [gps_argument, file_arg, index_arg]
    return [gps_argument, port_arg, file_arg, index_arg]


@dataclass
class GpsDumpResponse:
    """Raw GPSDump output or the reason there is none"""
    output: Optional[str] = None
    failure: Optional[FailureKind] = None
    message: str = ''

    @property
    def ok(self) -> bool:
        return self.failure is None


class GpsDumpInvoker(ABC):
    """Runs GPSDump with an argument vector"""

    @abstractmethod
    def invoke(self, args: List[str], output_file: Optional[str] = None) -> GpsDumpResponse:
        """Run once; read output_file instead of stdout when given"""


class SubprocessGpsDump(GpsDumpInvoker):
    """
    Runs the GPSDump executable as a blocking child process.
    """

    def __init__(self, executable: str, timeout: Optional[float] = None, check_exit: bool = True):
        self.executable = executable
        self.timeout = timeout
        # False reads the output whatever the exit status
        self.check_exit = check_exit

    def invoke(self, args: List[str], output_file: Optional[str] = None) -> GpsDumpResponse:
        if not os.path.isfile(self.executable):
            logger.error(f"GPSDump not found at {self.executable}")
            return GpsDumpResponse(failure=FailureKind.GPSDUMP_NOT_FOUND, message='GPSDump not found')

        logger.info(f"{os.path.basename(self.executable)} {' '.join(args)}")
        try:
            completed = subprocess.run(
                [self.executable] + args,
                capture_output=True,
                check=self.check_exit,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            return GpsDumpResponse(failure=FailureKind.GPSDUMP_NOT_FOUND, message='GPSDump not found')
        except (subprocess.SubprocessError, OSError) as e:
            logger.error(f"GPSDump error: {e}")
            return GpsDumpResponse(failure=FailureKind.GPSDUMP_ERROR, message=f"GPSDump error: {e}")

        if output_file is None:
            return GpsDumpResponse(output=completed.stdout.decode('utf-8', errors='ignore'))

        if not os.path.exists(output_file):
            return GpsDumpResponse(failure=FailureKind.NO_RESPONSE, message='No response from GPSDump')
        with open(output_file, 'r', encoding='utf-8', errors='ignore') as f:
            return GpsDumpResponse(output=f.read())


# Public function

def getGpsDumpPath(platform: Platform, gpsdump_dir: str) -> str:
    """Path of the GPSDump executable for a platform inside gpsdump_dir"""
    return os.path.join(gpsdump_dir, GPSDUMP_EXECUTABLES[platform])
