"""Tests for activity levels and display formatting."""

from tokenmeter.activity import DESCRIPTIONS, get_activity_level, get_stats, token_percent_of
from tokenmeter.formatting import currency_symbol, format_compact, format_money
from tokenmeter.models import SessionUsageReport


def test_activity_levels():
    assert get_activity_level(0, 0) == "idle"
    assert get_activity_level(74, 10) == "idle"
    assert get_activity_level(75, 0) == "moderate"
    assert get_activity_level(10, 90) == "heavy"


def test_stats_uses_higher_percentage():
    stats = get_stats(usage_percent=40, token_percent=80)
    assert stats.level == "moderate"
    assert stats.max_percent == 80
    assert stats.description == "Getting low"

    quirky = get_stats(usage_percent=95, quirky=True)
    assert quirky.description in DESCRIPTIONS["heavy"][1]


def test_token_percent():
    assert token_percent_of(SessionUsageReport(total_tokens=50_000), 200_000) == 25
    assert token_percent_of(None) == 0
    assert token_percent_of(SessionUsageReport(total_tokens=10), 0) == 0


def test_format_compact():
    assert format_compact(999) == "999"
    assert format_compact(1_234) == "1.2K"
    assert format_compact(2_500_000) == "2.5M"


def test_money():
    assert currency_symbol("EUR") == "€"
    assert currency_symbol("XYZ") == ""
    assert format_money(25, "EUR") == "€25.00"
    assert format_money(1.5, "XYZ") == "1.50 XYZ"
