"""Persistent store of known delivery addresses, backed by SQLite."""

from __future__ import annotations

import os
import sqlite3
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

_SCHEMA = """
CREATE TABLE IF NOT EXISTS addresses (
    id TEXT PRIMARY KEY,
    company_id TEXT NOT NULL,
    official_label TEXT NOT NULL UNIQUE,
    street_name TEXT NOT NULL,
    street_number TEXT,
    postcode TEXT NOT NULL,
    city TEXT NOT NULL,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    door_code TEXT,
    has_mailbox_access INTEGER NOT NULL DEFAULT 0,
    driver_notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

_COLUMNS = (
    "id, official_label, street_name, street_number, postcode, city, "
    "latitude, longitude, door_code, has_mailbox_access, driver_notes"
)


@dataclass
class CachedAddress:
    """An address as known to the store, with the driver's extra details."""

    id: str
    official_label: str
    street_name: str
    street_number: str | None
    postcode: str
    city: str
    latitude: float
    longitude: float
    door_code: str | None = None
    has_mailbox_access: bool = False
    driver_notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _from_row(row: sqlite3.Row | None) -> CachedAddress | None:
    if row is None:
        return None
    return CachedAddress(
        id=row["id"],
        official_label=row["official_label"],
        street_name=row["street_name"],
        street_number=row["street_number"],
        postcode=row["postcode"],
        city=row["city"],
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        door_code=row["door_code"],
        has_mailbox_access=bool(row["has_mailbox_access"]),
        driver_notes=row["driver_notes"],
    )


class AddressStore:
    """Addresses per company, looked up by label or by street and number."""

    def __init__(self, path: str | os.PathLike[str] = ":memory:") -> None:
        self._conn = sqlite3.connect(os.fspath(path))
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.execute(_SCHEMA)

    def __enter__(self) -> AddressStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def find_exact(self, address: str, company_id: str) -> CachedAddress | None:
        """Find an address whose label equals `address`, ignoring case."""
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM addresses "
            "WHERE company_id = ? AND LOWER(official_label) = LOWER(?) LIMIT 1",
            (company_id, address),
        ).fetchone()
        return _from_row(row)

    def find_by_street(
        self, street_name: str, street_number: str, company_id: str
    ) -> CachedAddress | None:
        """Find an address by street name (ignoring case) and exact number."""
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM addresses "
            "WHERE company_id = ? AND LOWER(street_name) = LOWER(?) "
            "AND street_number = ? LIMIT 1",
            (company_id, street_name, street_number),
        ).fetchone()
        return _from_row(row)

    def save(
        self,
        company_id: str,
        official_label: str,
        street_name: str,
        street_number: str | None,
        postcode: str,
        city: str,
        latitude: float,
        longitude: float,
    ) -> CachedAddress | None:
        """Insert an address; if its label is already known, only touch that row.

        Returns the stored row, which on a label conflict is the existing one.
        """
        now = _now()
        with self._conn:
            self._conn.execute(
                "INSERT INTO addresses (id, company_id, official_label, street_name, "
                "street_number, postcode, city, latitude, longitude, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT (official_label) DO UPDATE SET updated_at = excluded.updated_at",
                (
                    str(uuid.uuid4()), company_id, official_label, street_name,
                    street_number, postcode, city, latitude, longitude, now, now,
                ),
            )
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM addresses WHERE official_label = ? LIMIT 1",
            (official_label,),
        ).fetchone()
        return _from_row(row)

    def close(self) -> None:
        """Close the underlying database connection."""
        self._conn.close()