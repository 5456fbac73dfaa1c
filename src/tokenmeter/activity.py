"""Activity level from the remote usage percentage and the session context size."""

import random

from .config import DEFAULT_TOKEN_LIMIT
from .models import ActivityStats, SessionUsageReport

HEAVY_THRESHOLD = 90
MODERATE_THRESHOLD = 75

DESCRIPTIONS = {
    "heavy": ("Running low!", [
        "Houston, we have a problem",
        "We're gonna need a bigger boatload of tokens",
        "She canna take any more, Captain!",
    ]),
    "moderate": ("Getting low", [
        "Pace yourself, human",
        "May the tokens be with you",
        "One does not simply ignore token warnings",
    ]),
    "idle": ("Normal usage", [
        "All systems nominal, Captain",
        "I love it when a plan comes together",
        "To infinity and beyond!",
    ]),
}


def token_percent_of(session: SessionUsageReport | None, limit: int = DEFAULT_TOKEN_LIMIT) -> int:
    if session is None or limit <= 0:
        return 0
    return round(session.total_tokens / limit * 100)


def get_activity_level(usage_percent: float = 0, token_percent: float = 0) -> str:
    highest = max(usage_percent, token_percent)
    if highest >= HEAVY_THRESHOLD:
        return "heavy"
    if highest >= MODERATE_THRESHOLD:
        return "moderate"
    return "idle"


def get_stats(usage_percent: float | None = None, token_percent: int = 0, quirky: bool = False) -> ActivityStats:
    usage_percent = usage_percent or 0
    level = get_activity_level(usage_percent, token_percent)
    short, options = DESCRIPTIONS[level]
    return ActivityStats(
        level=level,
        usage_percent=usage_percent,
        token_percent=token_percent,
        max_percent=max(usage_percent, token_percent),
        description=random.choice(options) if quirky else short,
    )
