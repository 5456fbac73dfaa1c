"""Async SQLite store for usage snapshot history."""

import aiosqlite

from .config import DB_PATH
from .models import HistoryEntry, SessionUsageReport, UsageReport

SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL,
    total_tokens INTEGER NOT NULL DEFAULT 0,
    input_tokens INTEGER NOT NULL DEFAULT 0,
    output_tokens INTEGER NOT NULL DEFAULT 0,
    cache_creation_tokens INTEGER NOT NULL DEFAULT 0,
    cache_read_tokens INTEGER NOT NULL DEFAULT 0,
    message_count INTEGER NOT NULL DEFAULT 0,
    active_session_count INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_kind_created ON snapshots(kind, created_at);
"""


class Database:
    def __init__(self, db_path=None):
        self.db_path = db_path or DB_PATH
        self._db: aiosqlite.Connection | None = None

    async def init(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self.db_path))
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self):
        if self._db:
            await self._db.close()
            self._db = None

    async def log_entry(self, entry: HistoryEntry):
        await self._db.execute(
            """INSERT INTO snapshots
               (kind, total_tokens, input_tokens, output_tokens,
                cache_creation_tokens, cache_read_tokens, message_count,
                active_session_count, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                entry.kind,
                entry.total_tokens,
                entry.input_tokens,
                entry.output_tokens,
                entry.cache_creation_tokens,
                entry.cache_read_tokens,
                entry.message_count,
                entry.active_session_count,
                entry.created_at.isoformat(),
            ),
        )
        await self._db.commit()

    async def log_today(self, report: UsageReport):
        await self.log_entry(HistoryEntry(kind="today", **report.model_dump(exclude={"records"})))

    async def log_session(self, report: SessionUsageReport):
        await self.log_entry(HistoryEntry(kind="session", **report.model_dump(exclude={"is_active"})))

    async def get_recent(self, limit: int = 50, kind: str | None = None) -> list[HistoryEntry]:
        if kind is None:
            cursor = await self._db.execute(
                "SELECT * FROM snapshots ORDER BY created_at DESC, id DESC LIMIT ?",
                (limit,),
            )
        else:
            cursor = await self._db.execute(
                "SELECT * FROM snapshots WHERE kind = ? ORDER BY created_at DESC, id DESC LIMIT ?",
                (kind, limit),
            )
        rows = await cursor.fetchall()
        return [HistoryEntry(**{k: r[k] for k in r.keys() if k != "id"}) for r in rows]

    async def reset(self):
        await self._db.execute("DELETE FROM snapshots")
        await self._db.commit()
