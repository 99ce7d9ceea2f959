#!/usr/bin/env python3
"""
Logbook access for duplicate checks

The logbook is an existing SQLite file owned by the logbook application.
Only two read queries are needed: a count of flights at a given local minute
and the flights of a date range.
"""

import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from igc_model import LogbookRow
from igc_constants import LOGBOOK_SQLITE_MAGIC, LOGBOOK_TABLE

# Configure logger
logger = logging.getLogger(__name__)


class Logbook(ABC):
    """Read-only query interface of a pilot logbook"""

    @abstractmethod
    def count_by_local_minute(self, date_time: str) -> int:
        """Number of flights whose local takeoff is at 'YYYY-MM-DD HH:MM'"""

    @abstractmethod
    def rows_in_date_range(self, start: str, end: str) -> List[LogbookRow]:
        """Flights with start <= local timestamp <= end, both inclusive"""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False


class SqliteLogbook(Logbook):
    """
    Logbook stored in SQLite, opened read-only.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        uri = Path(db_path).resolve().as_uri() + '?mode=ro'
        self.connection = sqlite3.connect(uri, uri=True)
        self.connection.row_factory = sqlite3.Row

    def count_by_local_minute(self, date_time: str) -> int:
        row = self.connection.execute(
            f"SELECT COUNT(*) AS count FROM {LOGBOOK_TABLE} "
            "WHERE strftime('%Y-%m-%d %H:%M', V_Date) = ?",
            (date_time,)
        ).fetchone()
        return row['count'] if row else 0

    def rows_in_date_range(self, start: str, end: str) -> List[LogbookRow]:
        cursor = self.connection.execute(
            f"SELECT V_ID, V_Date, V_Duree, V_LatDeco, V_LongDeco FROM {LOGBOOK_TABLE} "
            "WHERE V_Date >= ? AND V_Date <= ?",
            (start, end)
        )
        return [
            LogbookRow(
                id=row['V_ID'],
                local_timestamp=row['V_Date'],
                duration_seconds=row['V_Duree'],
                latitude=row['V_LatDeco'],
                longitude=row['V_LongDeco'],
            )
            for row in cursor
        ]

    def close(self) -> None:
        self.connection.close()


def is_sqlite_file(db_path: str) -> bool:
    """Check the SQLite magic header"""
    try:
        with open(db_path, 'rb') as f:
            header = f.read(16)
    except OSError:
        return False
    return header.decode('utf-8', errors='ignore').startswith(LOGBOOK_SQLITE_MAGIC)


def open_logbook(db_path: Optional[str]) -> Optional[SqliteLogbook]:
    """Open a logbook read-only, None when it is missing or not a SQLite file"""
    if not db_path or not os.path.isfile(db_path):
        logger.warning(f"Logbook not found: {db_path}")
        return None
    if not is_sqlite_file(db_path):
        logger.warning(f"Not a SQLite logbook: {db_path}")
        return None

    try:
        return SqliteLogbook(db_path)
    except sqlite3.Error as e:
        logger.error(f"Could not open logbook {db_path}: {e}")
        return None
