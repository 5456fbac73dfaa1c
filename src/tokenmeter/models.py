"""Pydantic models for TokenMeter usage data."""

import math
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow():
    return datetime.now(UTC)


def token_count(value: Any) -> int:
    """Token counts arrive as JSON numbers; anything else counts as zero."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    # 1e400 decodes to inf
    if not math.isfinite(value):
        return 0
    return int(value)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 log timestamp. Naive values are taken as UTC."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class _Model(BaseModel):
    """Snake-case attributes, camelCase when dumped with ``by_alias=True``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UsageRecord(_Model):
    """One billable model invocation read from a session log line."""

    message_id: str | None = None
    request_id: str | None = None
    session_id: str | None = None
    timestamp: datetime | None = None
    model: str | None = None
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens + self.cache_creation_tokens + self.cache_read_tokens

    @classmethod
    def from_entry(cls, entry: dict[str, Any]) -> "UsageRecord":
        """Build a record from a raw log entry that already passed validation."""
        message = entry["message"]
        usage = message["usage"]
        message_id = message.get("id")
        request_id = entry.get("requestId")
        model = message.get("model")
        session_id = entry.get("sessionId")
        return cls(
            message_id=message_id if isinstance(message_id, str) else None,
            request_id=request_id if isinstance(request_id, str) else None,
            session_id=session_id if isinstance(session_id, str) else None,
            timestamp=parse_timestamp(entry.get("timestamp")),
            model=model if isinstance(model, str) else None,
            input_tokens=token_count(usage.get("input_tokens")),
            output_tokens=token_count(usage.get("output_tokens")),
            cache_creation_tokens=token_count(usage.get("cache_creation_input_tokens")),
            cache_read_tokens=token_count(usage.get("cache_read_input_tokens")),
        )


class UsageReport(_Model):
    """Aggregated token usage over a deduplicated record set."""

    total_tokens: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0
    message_count: int = 0
    records: list[UsageRecord] = Field(default_factory=list)

    @classmethod
    def from_records(cls, records: list[UsageRecord]) -> "UsageReport":
        input_tokens = sum(r.input_tokens for r in records)
        output_tokens = sum(r.output_tokens for r in records)
        cache_creation = sum(r.cache_creation_tokens for r in records)
        cache_read = sum(r.cache_read_tokens for r in records)
        return cls(
            total_tokens=input_tokens + output_tokens + cache_creation + cache_read,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cache_creation_tokens=cache_creation,
            cache_read_tokens=cache_read,
            message_count=len(records),
            records=records,
        )


class SessionUsageReport(_Model):
    """Context usage of the busiest recently active session.

    ``total_tokens`` is the largest cache_read value among the active
    sessions, not a sum across them.
    """

    total_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0
    message_count: int = 0
    is_active: bool = False
    active_session_count: int = 0


FieldType = Literal["percent", "time", "boolean", "cents", "string", "raw"]


class SchemaField(BaseModel):
    """Where a value lives in a remote response, and what to use when it doesn't."""

    model_config = ConfigDict(frozen=True)

    path: str
    type: FieldType = "raw"
    default: Any = None


class EndpointDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern: str
    contains: str


class UsageWindow(_Model):
    # Passed through as reported; the schema type tags are not enforced
    utilization: Any = None
    resets_at: Any = None


class UsageSnapshot(_Model):
    """Rolling usage windows reported by the usage endpoint."""

    five_hour: UsageWindow = Field(default_factory=UsageWindow)
    seven_day: UsageWindow = Field(default_factory=UsageWindow)
    seven_day_sonnet: UsageWindow = Field(default_factory=UsageWindow)
    seven_day_opus: UsageWindow = Field(default_factory=UsageWindow)
    extra_usage: Any = None
    fetched_at: datetime = Field(default_factory=_utcnow)


class OverageSnapshot(_Model):
    limit: float
    used: float
    currency: str = "USD"
    percent: int = 0
    out_of_credits: bool = False


class PrepaidSnapshot(_Model):
    balance: float
    currency: str = "USD"


class ActivityStats(_Model):
    level: Literal["idle", "moderate", "heavy"] = "idle"
    usage_percent: float = 0
    token_percent: int = 0
    max_percent: float = 0
    description: str = ""


class HistoryEntry(_Model):
    """A persisted usage snapshot."""

    kind: str
    total_tokens: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0
    message_count: int = 0
    active_session_count: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
