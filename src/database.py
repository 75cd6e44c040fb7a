"""
Site Content API - Content Store

Embedded SQLite database accessed through aiosqlite.  Each content snapshot
is stored as one JSON document in the ``snapshots`` table.  Rows are only
ever inserted: a new submission never updates or deletes an older one, and
"current content" is simply the row with the greatest ``updated_at``.

The store is an explicitly constructed client: the application creates a
``ContentStore`` at startup, calls :meth:`ContentStore.connect` before
serving, and :meth:`ContentStore.close` on shutdown.
"""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite
from loguru import logger

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS snapshots (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT UNIQUE NOT NULL,
    document TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_snapshots_updated_at ON snapshots(updated_at);
"""

# Ties on updated_at fall back to insertion order.
_LATEST_ORDER = "ORDER BY updated_at DESC, seq DESC"


class StoreNotConnectedError(RuntimeError):
    """Raised when the store is used before connect() or after close()."""


def _utc_now_iso() -> str:
    """Current UTC time as a sortable ISO-8601 string with milliseconds."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def row_to_document(row) -> Dict[str, Any]:
    """Convert a ``snapshots`` row into the stored document with its metadata."""
    if row is None:
        return {}
    try:
        document = json.loads(row["document"])
    except (json.JSONDecodeError, TypeError):
        logger.warning("⚠️ Snapshot {} has an unreadable document", row["id"])
        document = {}
    return {
        "_id": row["id"],
        **document,
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }


class ContentStore:
    """Async accessor for the content snapshots."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._db: Optional[aiosqlite.Connection] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def connect(self) -> None:
        """Open the connection and create the schema.  Failure is fatal."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._db = await aiosqlite.connect(str(self.db_path))
            self._db.row_factory = aiosqlite.Row
            await self._db.executescript(SCHEMA_SQL)
            await self._db.commit()
        except Exception as e:
            logger.critical(f"❌ Failed to initialize database: {e}")
            await self.close()
            raise
        logger.success(f"✅ Database initialized at {self.db_path}")

    async def close(self) -> None:
        """Close the connection if it is open."""
        if self._db is None:
            return
        db, self._db = self._db, None
        await db.close()
        logger.info("🔌 Database connection closed")

    @property
    def connected(self) -> bool:
        return self._db is not None

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreNotConnectedError("Content store is not connected")
        return self._db

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------
    async def ping(self) -> bool:
        """Return True when the database answers a trivial query."""
        if self._db is None:
            return False
        try:
            cursor = await self._db.execute("SELECT 1")
            row = await cursor.fetchone()
            return row is not None
        except Exception as e:
            logger.warning("⚠️ Database ping failed: {}", e)
            return False

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def insert_snapshot(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert *document* as a brand-new snapshot and return it as stored.

        The identifier and both timestamps are assigned here; any such keys
        already present in *document* are ignored.
        """
        db = self._conn()
        body = {
            key: value
            for key, value in document.items()
            if key not in ("_id", "createdAt", "updatedAt")
        }
        snapshot_id = uuid.uuid4().hex
        now = _utc_now_iso()

        try:
            await db.execute(
                """
                INSERT INTO snapshots (id, document, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (snapshot_id, json.dumps(body, ensure_ascii=False), now, now),
            )
            await db.commit()
        except Exception:
            # The connection is shared; a failed insert must not ride along
            # with the next request's commit.
            await db.rollback()
            raise
        logger.success(f"✅ Snapshot stored (id={snapshot_id})")
        return {"_id": snapshot_id, **body, "createdAt": now, "updatedAt": now}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def get_latest(self) -> Dict[str, Any]:
        """Return the most recent snapshot, or ``{}`` if none exists yet."""
        cursor = await self._conn().execute(
            f"SELECT * FROM snapshots {_LATEST_ORDER} LIMIT 1"
        )
        return row_to_document(await cursor.fetchone())

    async def get_snapshot(self, snapshot_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a snapshot by id, or None."""
        cursor = await self._conn().execute(
            "SELECT * FROM snapshots WHERE id = ?", (snapshot_id,)
        )
        row = await cursor.fetchone()
        return row_to_document(row) if row else None

    async def list_snapshots(self) -> List[Dict[str, Any]]:
        """All snapshots, newest first."""
        cursor = await self._conn().execute(f"SELECT * FROM snapshots {_LATEST_ORDER}")
        rows = await cursor.fetchall()
        return [row_to_document(row) for row in rows]

    async def count_snapshots(self) -> int:
        cursor = await self._conn().execute("SELECT COUNT(*) FROM snapshots")
        (count,) = await cursor.fetchone()
        return count
