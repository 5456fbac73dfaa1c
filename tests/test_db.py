"""Tests for the snapshot history store."""

import pytest

from tokenmeter.db import Database
from tokenmeter.models import SessionUsageReport, UsageRecord, UsageReport


@pytest.fixture
async def db(tmp_path):
    database = Database(tmp_path / "nested" / "history.db")
    await database.init()
    yield database
    await database.close()


async def test_log_and_read_back(db):
    await db.log_today(UsageReport.from_records([UsageRecord(message_id="m", input_tokens=5, output_tokens=7)]))
    await db.log_session(SessionUsageReport(total_tokens=900, cache_read_tokens=900, active_session_count=2))

    entries = await db.get_recent()

    assert [e.kind for e in entries] == ["session", "today"]
    session, today = entries
    assert session.total_tokens == 900
    assert session.active_session_count == 2
    assert today.total_tokens == 12
    assert today.message_count == 1


async def test_filter_limit_and_reset(db):
    for i in range(3):
        await db.log_session(SessionUsageReport(total_tokens=i))
    await db.log_today(UsageReport())

    assert len(await db.get_recent(limit=2)) == 2
    assert [e.total_tokens for e in await db.get_recent(kind="session")] == [2, 1, 0]

    await db.reset()
    assert await db.get_recent() == []
