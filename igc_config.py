#!/usr/bin/env python3
"""
Configuration handling for the IGC / GPSDump flight importer

Settings come from an INI file (searched in the working directory and next to
the modules, or given on the command line) and are overridden by command line
arguments.
"""

import configparser
import logging
import os
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from igc_model import Platform
from igc_constants import CONFIG_FILE_NAMES, CONFIG_SECTION_DEFAULTS, SCAN_MAX_DEPTH
from gpsdump_runner import getGpsDumpPath

# Configure logger
logger = logging.getLogger(__name__)


def default_platform() -> Platform:
    """Platform matching the running interpreter"""
    if sys.platform.startswith('win'):
        return Platform.WIN
    if sys.platform == 'darwin':
        return Platform.MAC64
    return Platform.LINUX


def parse_platform(value: str) -> Platform:
    """Platform from its config name, raises ValueError when unknown"""
    try:
        return Platform(value.strip().lower())
    except ValueError:
        raise ValueError(f"Unknown platform: {value}") from None


@dataclass
class GpsDumpSettings:
    """Where GPSDump lives and how it is run"""
    platform: Platform = field(default_factory=default_platform)
    directory: str = field(default_factory=lambda: os.path.dirname(os.path.abspath(__file__)))
    executable: Optional[str] = None
    temp_dir: str = field(default_factory=tempfile.gettempdir)
    timeout: Optional[float] = None

    @property
    def executable_path(self) -> str:
        """Explicit executable or the platform build inside the GPSDump folder"""
        if self.executable:
            return self.executable
        return getGpsDumpPath(self.platform, self.directory)


@dataclass
class ScanSettings:
    """Track file discovery settings"""
    max_depth: int = SCAN_MAX_DEPTH


class ConfigParser:
    """
    Reads the INI configuration file.
    """

    def __init__(self):
        self.parser = configparser.RawConfigParser()

    def find_config_file(self, cli_path: Optional[str] = None) -> Optional[str]:
        """Find a configuration file to use"""
        if cli_path:
            if os.path.isfile(cli_path):
                logger.info(f"Using configuration file: {cli_path}")
                return cli_path
            logger.warning(f"Configuration file not found: {cli_path}")

        paths = ('.', os.path.dirname(os.path.abspath(__file__)))
        for path in paths:
            for name in CONFIG_FILE_NAMES:
                full_path = os.path.join(path, name)
                if Path(full_path).is_file():
                    logger.info(f"Found configuration file: {full_path}")
                    return full_path

        logger.debug("No configuration file found, using defaults")
        return None

    def load_config_file(self, file_path: Optional[str] = None) -> bool:
        """Load configuration from file"""
        config_file = self.find_config_file(file_path)
        if not config_file:
            return False

        try:
            self.parser.read(config_file)
            return True
        except configparser.Error as e:
            logger.error(f"Error reading config file: {e}")
            return False

    def get_default_settings(self) -> Dict[str, str]:
        """Keys of the [Defaults] section, lower-cased by configparser"""
        if CONFIG_SECTION_DEFAULTS in self.parser:
            return dict(self.parser[CONFIG_SECTION_DEFAULTS])
        return {}


class Config:
    """Main configuration class for the flight importer"""

    def __init__(self, cli_args):
        """Initialize with command line arguments"""
        self.parser = ConfigParser()
        self.cli_args = cli_args

        self.database: Optional[str] = None
        self.gpsdump = GpsDumpSettings()
        self.scan = ScanSettings()

        self._load_config()

    def _cli(self, name: str):
        return getattr(self.cli_args, name, None)

    def _load_config(self):
        """Load the file then apply command line overrides"""
        self.parser.load_config_file(self._cli('config'))
        defaults = self.parser.get_default_settings()

        self.database = self._cli('database') or defaults.get('database') or None

        platform = self._cli('platform') or defaults.get('platform')
        if platform:
            self.gpsdump.platform = parse_platform(platform)

        if 'gpsdumpdir' in defaults:
            self.gpsdump.directory = defaults['gpsdumpdir']
        self.gpsdump.executable = self._cli('gpsdump') or defaults.get('gpsdump') or None
        if 'tempdir' in defaults:
            self.gpsdump.temp_dir = defaults['tempdir']
        if 'gpsdumptimeout' in defaults:
            self.gpsdump.timeout = float(defaults['gpsdumptimeout'])

        if 'scandepth' in defaults:
            self.scan.max_depth = int(defaults['scandepth'])

        logger.debug(f"Logbook: {self.database}, platform: {self.platform.value}")

    @property
    def platform(self) -> Platform:
        return self.gpsdump.platform

    @property
    def gpsdump_path(self) -> str:
        return self.gpsdump.executable_path
