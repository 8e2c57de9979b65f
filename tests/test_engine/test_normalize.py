"""Tests for currency and condition normalization."""

import math
from datetime import datetime, timezone

import pytest

from pricefuse.engine.normalize import (
    classify_condition,
    convert_to_usd,
    normalize,
    standardize_condition,
)
from pricefuse.models import RawObservation, StandardCondition
from pricefuse.observability import OBSERVATIONS_DROPPED


def raw(price, currency="USD", condition="Near Mint", source="eBay") -> RawObservation:
    return RawObservation(
        source=source,
        price=price,
        currency=currency,
        condition=condition,
        observed_date=datetime(2026, 10, 1, tzinfo=timezone.utc),
        listing_url="https://example.com/1",
    )


class TestClassifyCondition:
    """Free text → standard scale."""

    @pytest.mark.parametrize("text, expected", [
        ("Mint", StandardCondition.MINT),
        ("Gem Mint 10", StandardCondition.MINT),
        ("NM-Mint", StandardCondition.MINT),
        ("Pristine", StandardCondition.MINT),
        ("Near Mint", StandardCondition.NEAR_MINT),
        ("near mint holofoil", StandardCondition.NEAR_MINT),
        ("Like New", StandardCondition.NEAR_MINT),
        ("NM", StandardCondition.NEAR_MINT),
        ("Excellent+", StandardCondition.NEAR_MINT),
        ("Excellent", StandardCondition.EXCELLENT),
        ("Very Good", StandardCondition.EXCELLENT),
        ("Lightly Played", StandardCondition.EXCELLENT),
        ("LP", StandardCondition.EXCELLENT),
        ("Moderately Played", StandardCondition.GOOD),
        ("Good", StandardCondition.GOOD),
        ("Played", StandardCondition.GOOD),
        ("MP", StandardCondition.GOOD),
        ("Heavily Played", StandardCondition.POOR),
        ("HP", StandardCondition.POOR),
        ("Damaged", StandardCondition.POOR),
        ("Poor", StandardCondition.POOR),
    ])
    def test_known_labels(self, text, expected):
        assert classify_condition(text) is expected

    def test_abbreviations_match_whole_words_only(self):
        assert classify_condition("Champion Deck") is None
        assert classify_condition("Help") is None

    def test_unmatched_and_empty(self):
        assert classify_condition(None) is None
        assert classify_condition("") is None
        assert classify_condition("Unknown") is None

    def test_standardize_defaults_to_good(self):
        assert standardize_condition("Unknown") is StandardCondition.GOOD
        assert standardize_condition(None) is StandardCondition.GOOD
        assert standardize_condition("Near Mint") is StandardCondition.NEAR_MINT


class TestConvertToUsd:
    """Static rate table conversion."""

    def test_known_currencies(self):
        assert convert_to_usd(100.0, "USD") == (100.0, True)
        assert convert_to_usd(100.0, "EUR") == (pytest.approx(108.0), True)
        assert convert_to_usd(100.0, "gbp") == (pytest.approx(127.0), True)
        assert convert_to_usd(10000.0, "JPY") == (pytest.approx(67.0), True)

    def test_unknown_currency_passes_through(self):
        assert convert_to_usd(100.0, "XYZ") == (100.0, False)

    def test_missing_currency_is_usd(self):
        assert convert_to_usd(100.0, None) == (100.0, True)


class TestNormalize:
    """Record-level normalization."""

    def test_converts_and_standardizes(self, events):
        result = normalize([raw(100.0, currency="EUR", condition="Lightly Played")], sink=events)

        assert len(result) == 1
        obs = result[0]
        assert obs.price_usd == pytest.approx(108.0)
        assert obs.standard_condition is StandardCondition.EXCELLENT
        assert obs.source == "eBay"
        assert obs.listing_url == "https://example.com/1"
        assert OBSERVATIONS_DROPPED not in events.names()

    def test_drops_unusable_prices(self, events):
        observations = [
            raw(0.0),
            raw(-5.0),
            raw(math.nan),
            raw(math.inf),
            raw(25.0),
        ]

        result = normalize(observations, sink=events)

        assert [o.price_usd for o in result] == [25.0]
        dropped = events.of(OBSERVATIONS_DROPPED)
        assert dropped == [{"dropped": 4, "received": 5}]

    def test_drops_missing_date(self, events):
        undated = RawObservation(
            source="eBay", price=30.0, currency="USD", condition="Good", observed_date=None,
        )

        result = normalize([undated, raw(25.0)], sink=events)

        assert [o.price_usd for o in result] == [25.0]
        assert events.of(OBSERVATIONS_DROPPED) == [{"dropped": 1, "received": 2}]

    def test_unknown_currency_kept_unconverted(self, events):
        result = normalize([raw(40.0, currency="CHF")], sink=events)

        assert [o.price_usd for o in result] == [40.0]

    def test_unknown_condition_defaults_to_good(self, events):
        result = normalize([raw(40.0, condition="Unknown")], sink=events)

        assert result[0].standard_condition is StandardCondition.GOOD

    def test_empty_input(self, events):
        assert normalize([], sink=events) == []
