"""SQLite-backed persistent store.

Coordinates and durations are append-only: a value written once is never
replaced, so concurrent writers for the same key always agree on the
first value.
"""

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from cache.base import Store
from models.constants import TransportationMode
from models.credentials import Credentials
from models.criterion import Criterion
from traveltime.errors import CacheError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS buildings (
    address TEXT PRIMARY KEY,
    lat     REAL NOT NULL,
    lng     REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS times (
    origin      TEXT NOT NULL,
    destination TEXT NOT NULL,
    mode        TEXT NOT NULL,
    time        INTEGER NOT NULL,
    PRIMARY KEY (origin, destination, mode)
);

CREATE TABLE IF NOT EXISTS credentials (
    app_id TEXT NOT NULL,
    key    TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS criteria (
    position INTEGER PRIMARY KEY,
    data     TEXT NOT NULL
);
"""


class SQLiteStore(Store):
    """Store backed by a single sqlite3 connection guarded by a lock."""

    def __init__(self, path: str = "data.db"):
        """
        Open (and create if needed) the database.

        Args:
            path: Database file path, or ":memory:"
        """
        self.path = path
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(path, timeout=10, check_same_thread=False)
            self._conn.executescript(SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise CacheError(f"Failed to open database {path}: {e}") from e
        logger.debug(f"Opened store at {path}")

    def _execute(self, sql: str, params: tuple = ()) -> None:
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(sql, params)
            except sqlite3.Error as e:
                raise CacheError(f"Database write failed: {e}") from e

    def _query_one(self, sql: str, params: tuple = ()) -> Optional[tuple]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchone()
            except sqlite3.Error as e:
                raise CacheError(f"Database read failed: {e}") from e

    def get_coords(self, address: str) -> Optional[Tuple[float, float]]:
        row = self._query_one(
            "SELECT lng, lat FROM buildings WHERE address = ?", (address,)
        )
        if row is None:
            return None
        return float(row[0]), float(row[1])

    def set_coords(self, address: str, lng: float, lat: float) -> None:
        self._execute(
            "INSERT INTO buildings (address, lat, lng) VALUES (?, ?, ?) "
            "ON CONFLICT DO NOTHING",
            (address, lat, lng),
        )

    def get_time(
        self, origin: str, destination: str, mode: TransportationMode
    ) -> Optional[int]:
        row = self._query_one(
            "SELECT time FROM times WHERE origin = ? AND destination = ? AND mode = ?",
            (origin, destination, mode.value),
        )
        return int(row[0]) if row else None

    def set_time(
        self, origin: str, destination: str, mode: TransportationMode, seconds: int
    ) -> None:
        self._execute(
            "INSERT INTO times (origin, destination, mode, time) VALUES (?, ?, ?, ?) "
            "ON CONFLICT DO NOTHING",
            (origin, destination, mode.value, int(seconds)),
        )

    def save_credentials(self, credentials: Credentials) -> None:
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute("DELETE FROM credentials")
                    self._conn.execute(
                        "INSERT INTO credentials (app_id, key) VALUES (?, ?)",
                        (credentials.app_id, credentials.api_key),
                    )
            except sqlite3.Error as e:
                raise CacheError(f"Failed to save credentials: {e}") from e

    def get_credentials(self) -> Optional[Credentials]:
        row = self._query_one("SELECT app_id, key FROM credentials LIMIT 1")
        if row is None:
            return None
        return Credentials(app_id=row[0], api_key=row[1])

    def set_criteria(self, criteria: List[Criterion]) -> None:
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute("DELETE FROM criteria")
                    self._conn.executemany(
                        "INSERT INTO criteria (position, data) VALUES (?, ?)",
                        [
                            (position, json.dumps(criterion.to_dict()))
                            for position, criterion in enumerate(criteria)
                        ],
                    )
            except sqlite3.Error as e:
                raise CacheError(f"Failed to save criteria: {e}") from e

    def get_criteria(self) -> List[Criterion]:
        with self._lock:
            try:
                rows = self._conn.execute(
                    "SELECT data FROM criteria ORDER BY position"
                ).fetchall()
            except sqlite3.Error as e:
                raise CacheError(f"Failed to load criteria: {e}") from e
        return [Criterion.from_dict(json.loads(row[0])) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
