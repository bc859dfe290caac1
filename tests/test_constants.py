"""Tests for the shared coordination tables and helpers."""

import pytest

from wealthpilot.coordination.constants import (
    MODULE_STATUS,
    MODULE_STATUS_DEFAULT,
    band_lookup,
    category_priority,
    format_gbp,
    module_category,
)


class TestFormatting:
    @pytest.mark.parametrize(
        "amount, decimals, expected",
        [
            (1234.5, 2, "£1,234.50"),
            (1234.5, 0, "£1,234"),
            (0, 2, "£0.00"),
            (350_000, 0, "£350,000"),
        ],
    )
    def test_format_gbp(self, amount: float, decimals: int, expected: str) -> None:
        assert format_gbp(amount, decimals) == expected


class TestLookups:
    def test_band_lookup_first_match_wins(self) -> None:
        assert band_lookup(85, MODULE_STATUS, MODULE_STATUS_DEFAULT) == "excellent"
        assert band_lookup(60, MODULE_STATUS, MODULE_STATUS_DEFAULT) == "good"
        assert band_lookup(39.9, MODULE_STATUS, MODULE_STATUS_DEFAULT) == "critical"

    def test_band_lookup_custom_comparison(self) -> None:
        bands = ((50, "cheap"), (200, "moderate"))
        assert band_lookup(30, bands, "dear", compare=lambda v, t: v < t) == "cheap"
        assert band_lookup(500, bands, "dear", compare=lambda v, t: v < t) == "dear"

    def test_categories(self) -> None:
        assert module_category("savings") == "emergency_fund"
        assert module_category("holiday") == "holiday"
        assert category_priority("emergency_fund") < category_priority("estate")
        assert category_priority("holiday") == 999
