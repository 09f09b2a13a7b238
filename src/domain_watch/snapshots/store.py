"""
Snapshot persistent storage.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .models import DomainSnapshot, SnapshotField

logger = logging.getLogger(__name__)

_COLUMNS = (
    "name, registrar, state, tier, transfer_to, last_check, "
    "spf, dmarc, nameservers, status, whois"
)


class StoreError(Exception):
    """Raised when the snapshot database cannot be read or written."""


class SnapshotStore:
    """
    Persistent storage for domain snapshots using SQLite.

    ``domain_info`` holds the live snapshot per domain; ``domain_info_history``
    is append-only. Every call opens its own connection so worker threads
    can read and write different domains at the same time.
    """

    def __init__(self, db_path: str = "/data/domain_watch.db", timeout: float = 30.0):
        """
        Initialize snapshot store.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait on a locked database
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Cannot create database directory for {self.db_path}: {e}") from e
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        try:
            with self._connect() as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS domain_info (
                        name TEXT PRIMARY KEY,
                        registrar TEXT NOT NULL DEFAULT '',
                        state TEXT NOT NULL DEFAULT '',
                        tier TEXT NOT NULL DEFAULT '',
                        transfer_to TEXT NOT NULL DEFAULT '',
                        last_check TEXT NOT NULL,
                        spf TEXT NOT NULL DEFAULT '',
                        dmarc TEXT NOT NULL DEFAULT '',
                        nameservers TEXT NOT NULL DEFAULT '',
                        status INTEGER NOT NULL DEFAULT 1,
                        whois TEXT NOT NULL DEFAULT ''
                    )
                """)
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS domain_info_history (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        registrar TEXT NOT NULL DEFAULT '',
                        state TEXT NOT NULL DEFAULT '',
                        tier TEXT NOT NULL DEFAULT '',
                        transfer_to TEXT NOT NULL DEFAULT '',
                        last_check TEXT NOT NULL,
                        spf TEXT NOT NULL DEFAULT '',
                        dmarc TEXT NOT NULL DEFAULT '',
                        nameservers TEXT NOT NULL DEFAULT '',
                        status INTEGER NOT NULL DEFAULT 1,
                        whois TEXT NOT NULL DEFAULT ''
                    )
                """)

                conn.execute("CREATE INDEX IF NOT EXISTS idx_domain_status ON domain_info(status)")
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_history_name ON domain_info_history(name, id)"
                )

                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot initialize snapshot database at {self.db_path}: {e}") from e

        logger.info(f"Initialized snapshot database at {self.db_path}")

    def ping(self) -> None:
        """Raise StoreError if the database is not usable."""
        try:
            with self._connect() as conn:
                conn.execute("SELECT 1").fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Snapshot database unreachable: {e}") from e

    def list_active(self) -> List[DomainSnapshot]:
        """
        List all domains flagged as active.

        Returns:
            Live snapshots ordered by name
        """
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM domain_info WHERE status = 1 ORDER BY name"
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list active domains: {e}") from e

        return [self._row_to_snapshot(dict(row)) for row in rows]

    def get_current(self, name: str) -> Optional[DomainSnapshot]:
        """
        Get the live snapshot of a domain.

        Args:
            name: Domain name

        Returns:
            DomainSnapshot or None if not found
        """
        try:
            with self._connect() as conn:
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM domain_info WHERE name = ?", (name,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read domain {name}: {e}") from e

        if not row:
            return None
        return self._row_to_snapshot(dict(row))

    def get_latest_history(self, name: str) -> Optional[DomainSnapshot]:
        """
        Get the most recently appended history snapshot of a domain.

        Args:
            name: Domain name

        Returns:
            DomainSnapshot or None if the domain has no history yet
        """
        try:
            with self._connect() as conn:
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM domain_info_history "
                    "WHERE name = ? ORDER BY id DESC LIMIT 1",
                    (name,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read history for {name}: {e}") from e

        if not row:
            return None
        return self._row_to_snapshot(dict(row))

    def update_field(self, name: str, field: SnapshotField, value: str) -> None:
        """
        Overwrite one monitored column of the live snapshot and stamp last_check.

        Args:
            name: Domain name
            field: Column to overwrite
            value: New value
        """
        if not isinstance(field, SnapshotField):
            raise ValueError(f"Field {field!r} cannot be updated")

        # column name comes from the enum, never from input
        query = f"UPDATE domain_info SET {field.value} = ?, last_check = ? WHERE name = ?"
        try:
            with self._connect() as conn:
                conn.execute(query, (value, datetime.utcnow().isoformat(), name))
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to update {field.value} for {name}: {e}") from e

        logger.debug(f"Updated {field.value} for {name}")

    def append_history(self, snapshot: DomainSnapshot) -> None:
        """
        Append a snapshot to the history table.

        Args:
            snapshot: Snapshot to record
        """
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO domain_info_history ({_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    self._snapshot_params(snapshot),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to append history for {snapshot.name}: {e}") from e

        logger.debug(f"Appended history row for {snapshot.name}")

    def upsert_domain(self, snapshot: DomainSnapshot) -> None:
        """
        Insert or replace the live snapshot of a domain.

        Args:
            snapshot: Snapshot to save
        """
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT OR REPLACE INTO domain_info ({_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    self._snapshot_params(snapshot),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to save domain {snapshot.name}: {e}") from e

        logger.debug(f"Saved domain: {snapshot.name}")

    def set_active(self, name: str, active: bool) -> bool:
        """
        Flag a domain as active or inactive.

        Returns:
            True if the domain exists
        """
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "UPDATE domain_info SET status = ? WHERE name = ?", (int(active), name)
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to update status for {name}: {e}") from e

        if cursor.rowcount == 0:
            logger.warning(f"Domain {name} not found")
            return False
        return True

    def list_history(self, name: str, limit: Optional[int] = None) -> List[DomainSnapshot]:
        """
        List history snapshots of a domain, newest first.

        Args:
            name: Domain name
            limit: Maximum number of rows to return
        """
        query = f"SELECT {_COLUMNS} FROM domain_info_history WHERE name = ? ORDER BY id DESC"
        params: list = [name]
        if limit:
            query += " LIMIT ?"
            params.append(limit)

        try:
            with self._connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list history for {name}: {e}") from e

        return [self._row_to_snapshot(dict(row)) for row in rows]

    def count_history(self, name: str) -> int:
        try:
            with self._connect() as conn:
                return conn.execute(
                    "SELECT COUNT(*) FROM domain_info_history WHERE name = ?", (name,)
                ).fetchone()[0]
        except sqlite3.Error as e:
            raise StoreError(f"Failed to count history for {name}: {e}") from e

    @staticmethod
    def _snapshot_params(snapshot: DomainSnapshot) -> tuple:
        return (
            snapshot.name,
            snapshot.registrar,
            snapshot.state,
            snapshot.tier,
            snapshot.transfer_to,
            snapshot.last_check.isoformat(),
            snapshot.spf,
            snapshot.dmarc,
            snapshot.nameservers,
            int(snapshot.active),
            snapshot.whois,
        )

    def _row_to_snapshot(self, row: Dict) -> DomainSnapshot:
        """Convert database row to DomainSnapshot model."""
        return DomainSnapshot(
            name=row["name"],
            registrar=row["registrar"] or "",
            state=row["state"] or "",
            tier=row["tier"] or "",
            transfer_to=row["transfer_to"] or "",
            last_check=datetime.fromisoformat(row["last_check"]),
            spf=row["spf"] or "",
            dmarc=row["dmarc"] or "",
            nameservers=row["nameservers"] or "",
            active=bool(row["status"]),
            whois=row["whois"] or "",
        )
