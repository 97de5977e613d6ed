"""Async database operations for the window alert poller.

This package provides async database operations using aiosqlite and the
Store gateway the polling pipeline persists through.
"""

from windowalert.lib.db.connection import Database as Database
from windowalert.lib.db.store import Store as Store
from windowalert.lib.db.types import DeviceRow as DeviceRow
from windowalert.lib.db.types import MeasurementRow as MeasurementRow
from windowalert.lib.db.types import SQLParams as SQLParams
