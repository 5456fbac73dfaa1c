"""Normalize intercepted claude.ai usage API responses."""

import json
import logging
import math
from typing import Any

from .models import OverageSnapshot, PrepaidSnapshot, UsageSnapshot, UsageWindow
from .schema import (
    OVERAGE_API_SCHEMA,
    PREPAID_API_SCHEMA,
    PREPAID_BALANCE_PATHS,
    USAGE_API_SCHEMA,
    classify_endpoint,
    extract,
    resolve_field,
    resolve_first,
)

logger = logging.getLogger("tokenmeter")

Snapshot = UsageSnapshot | OverageSnapshot | PrepaidSnapshot


def _safe_json(body: bytes | str) -> Any:
    try:
        return json.loads(body)
    except (json.JSONDecodeError, ValueError):
        return None


def _cents(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return value / 100


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def process_usage_data(data: Any) -> UsageSnapshot:
    extracted = extract(data, USAGE_API_SCHEMA)
    return UsageSnapshot(
        five_hour=UsageWindow(**extracted["five_hour"]),
        seven_day=UsageWindow(**extracted["seven_day"]),
        seven_day_sonnet=UsageWindow(**extracted["seven_day_sonnet"]),
        seven_day_opus=UsageWindow(**extracted["seven_day_opus"]),
        extra_usage=extracted["extra_usage"]["value"],
    )


def process_overage_data(data: Any) -> OverageSnapshot | None:
    """Overage spend in major currency units. None when overage is not enabled."""
    if not data:
        return None

    extracted = extract(data, OVERAGE_API_SCHEMA)
    if not extracted["is_enabled"]:
        return None

    used = _cents(extracted["used_credits"])
    limit = _cents(extracted["monthly_limit"])
    return OverageSnapshot(
        limit=limit,
        used=used,
        currency=str(extracted["currency"]),
        percent=_round_half_up(used / limit * 100) if limit > 0 else 0,
        out_of_credits=bool(extracted["out_of_credits"]),
    )


def process_prepaid_data(data: Any) -> PrepaidSnapshot | None:
    """Prepaid balance in major currency units.

    A zero balance is reported as None, the same as having no prepaid plan.
    """
    if not data:
        return None

    balance = _cents(resolve_first(data, PREPAID_BALANCE_PATHS, 0))
    if balance == 0:
        return None

    return PrepaidSnapshot(
        balance=balance,
        currency=str(resolve_field(data, PREPAID_API_SCHEMA["currency"])),
    )


def process_response(url: str, body: bytes | str | dict) -> tuple[str, Snapshot | None] | None:
    """Route a response body by URL. Returns None for URLs we don't track."""
    endpoint = classify_endpoint(url)
    if endpoint is None:
        return None

    data = body if isinstance(body, dict) else _safe_json(body)
    if data is None:
        logger.warning("Unparseable %s response from %s", endpoint, url)

    if endpoint == "usage":
        snapshot = process_usage_data(data)
    elif endpoint == "overage_spend_limit":
        snapshot = process_overage_data(data)
    else:
        snapshot = process_prepaid_data(data)

    logger.debug("Processed %s response: %s", endpoint, snapshot)
    return endpoint, snapshot
