"""Validation and deduplication of session log records."""

from collections.abc import Iterable
from typing import Any

from .models import UsageRecord

SYNTHETIC_MODEL = "<synthetic>"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_usage_record(raw: Any) -> bool:
    """True if a parsed log line is a billable model response."""
    if not isinstance(raw, dict):
        return False
    message = raw.get("message")
    if not isinstance(message, dict):
        return False
    usage = message.get("usage")
    if not isinstance(usage, dict):
        return False
    return (
        _is_number(usage.get("input_tokens"))
        and _is_number(usage.get("output_tokens"))
        and message.get("model") != SYNTHETIC_MODEL
        and not raw.get("isApiErrorMessage")
    )


def record_identity(record: UsageRecord) -> str:
    # Retried requests are rewritten with the same message and request ids
    return f"{record.message_id or ''}-{record.request_id or ''}"


def dedupe(records: Iterable[UsageRecord]) -> tuple[list[UsageRecord], set[str]]:
    """Drop repeats of an identity, keeping the first occurrence in order."""
    unique: list[UsageRecord] = []
    seen: set[str] = set()
    for record in records:
        key = record_identity(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique, seen
