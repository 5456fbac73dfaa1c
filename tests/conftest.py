"""Shared fixtures: a fake Claude Code projects tree."""

import json
from datetime import UTC, datetime

import pytest


@pytest.fixture
def projects_root(tmp_path):
    root = tmp_path / "projects"
    root.mkdir()
    return root


@pytest.fixture
def make_entry():
    def _make(
        message_id="msg_1",
        request_id="req_1",
        input_tokens=100,
        output_tokens=50,
        cache_creation=0,
        cache_read=0,
        model="claude-sonnet-4-5",
        timestamp=None,
        **extra,
    ):
        entry = {
            "type": "assistant",
            "requestId": request_id,
            "sessionId": "session-1",
            "timestamp": timestamp or datetime.now(UTC).isoformat(),
            "message": {
                "id": message_id,
                "role": "assistant",
                "model": model,
                "usage": {
                    "input_tokens": input_tokens,
                    "output_tokens": output_tokens,
                    "cache_creation_input_tokens": cache_creation,
                    "cache_read_input_tokens": cache_read,
                },
            },
        }
        entry.update(extra)
        return entry

    return _make


@pytest.fixture
def write_log():
    def _write(path, entries, raw_lines=()):
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(e) for e in entries] + list(raw_lines)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
