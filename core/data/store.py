"""SQLite storage for the conversion history.

Keeps the most recent conversions only; older rows are pruned on insert.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from core.models.conversions import Conversion, ConversionType

logger = logging.getLogger(__name__)


class HistoryStore:
    """Recent natural language <-> cron conversions.

    Usage:
        store = HistoryStore(home / "history.sqlite", max_items=10)
        store.add("every day at 9am", "0 9 * * *", "nl-to-cron")
        store.recent()  # newest first
    """

    def __init__(self, db_path: Path | str, max_items: int = 10) -> None:
        self._db_path = Path(db_path)
        self._max_items = max_items
        self._db: sqlite3.Connection | None = None
        self._init_sqlite()

    # ------------------------------------------------------------------
    # SQLite
    # ------------------------------------------------------------------

    def _init_sqlite(self) -> None:
        """Open the database and create tables if needed."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = sqlite3.connect(str(self._db_path))
        self._db.row_factory = sqlite3.Row
        self._db.execute("PRAGMA journal_mode=WAL")

        self._db.executescript("""
            CREATE TABLE IF NOT EXISTS conversions (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                input TEXT NOT NULL,
                output TEXT NOT NULL,
                type TEXT NOT NULL,
                timestamp TEXT NOT NULL
            );
        """)
        self._db.commit()
        logger.info("SQLite initialized at %s", self._db_path)

    @property
    def db(self) -> sqlite3.Connection:
        if self._db is None:
            raise RuntimeError("Store not initialized")
        return self._db

    def close(self) -> None:
        """Close the SQLite connection."""
        if self._db:
            self._db.close()
            self._db = None

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def add(self, input: str, output: str, type: ConversionType) -> Conversion:
        """Record a conversion and drop anything beyond `max_items`."""
        conversion = Conversion(input=input, output=output, type=type)
        self.db.execute(
            """INSERT INTO conversions (id, input, output, type, timestamp)
               VALUES (?, ?, ?, ?, ?)""",
            (
                conversion.id,
                conversion.input,
                conversion.output,
                conversion.type,
                conversion.timestamp.isoformat(),
            ),
        )
        self.db.execute(
            """DELETE FROM conversions WHERE seq NOT IN
               (SELECT seq FROM conversions ORDER BY seq DESC LIMIT ?)""",
            (self._max_items,),
        )
        self.db.commit()
        return conversion

    def recent(self, limit: int | None = None) -> list[Conversion]:
        """Return stored conversions, newest first."""
        rows = self.db.execute(
            "SELECT * FROM conversions ORDER BY seq DESC LIMIT ?",
            (limit if limit is not None else self._max_items,),
        ).fetchall()
        return [self._row_to_conversion(r) for r in rows]

    def clear(self) -> int:
        """Delete every stored conversion. Returns how many were removed."""
        cursor = self.db.execute("DELETE FROM conversions")
        self.db.commit()
        return cursor.rowcount

    def _row_to_conversion(self, row: sqlite3.Row) -> Conversion:
        return Conversion(
            id=row["id"],
            input=row["input"],
            output=row["output"],
            type=row["type"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
        )
