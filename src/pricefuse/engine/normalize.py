"""Normalization: raw provider observations → USD on the standard condition scale.

- Currency: static rate table; unknown codes pass through unconverted
- Condition: keyword matching on free text into 5 ordinal levels,
  unmatched text defaults to Good
- Non-positive or non-finite prices and missing dates are dropped and
  counted, never raised
"""

import logging
import math
import re
from datetime import datetime

from pricefuse.models import NormalizedObservation, RawObservation, StandardCondition
from pricefuse.observability import OBSERVATIONS_DROPPED, EventSink, emit_event

logger = logging.getLogger(__name__)

# USD per unit of currency (static; no live FX)
CURRENCY_RATES: dict[str, float] = {
    "USD": 1.0,
    "EUR": 1.08,
    "GBP": 1.27,
    "CAD": 0.73,
    "AUD": 0.65,
    "JPY": 0.0067,
}

# Ordered: first match wins. Short abbreviations are matched as whole words
# so that e.g. "champion" does not read as "mp".
# Poor is checked before Good so "Heavily Played" lands on Poor, not on the
# generic "played" rule.
_CONDITION_RULES: list[tuple[StandardCondition, re.Pattern]] = [
    (StandardCondition.MINT, re.compile(r"gem|pristine")),
    (StandardCondition.NEAR_MINT, re.compile(r"near mint|like new|excellent\+|\bnm\b")),
    (StandardCondition.EXCELLENT, re.compile(r"excellent|very good|lightly played|\blp\b")),
    (StandardCondition.POOR, re.compile(r"heavily played|poor|damaged|\bhp\b")),
    (StandardCondition.GOOD, re.compile(r"moderately played|good|played|\bmp\b")),
]


def classify_condition(text: str | None) -> StandardCondition | None:
    """Map free-text condition onto the standard scale.

    Returns:
        The matched level, or None when nothing matched
    """
    if not text:
        return None
    normalized = text.lower().strip()

    # "mint" without "near" is true mint ("Gem Mint", "Mint 10", "NM-Mint")
    if "mint" in normalized and "near" not in normalized:
        return StandardCondition.MINT

    for condition, pattern in _CONDITION_RULES:
        if pattern.search(normalized):
            return condition
    return None


def standardize_condition(text: str | None) -> StandardCondition:
    """classify_condition() with the Good default for unmatched text."""
    matched = classify_condition(text)
    if matched is None:
        logger.debug("Unknown condition %r, defaulting to Good", text)
        return StandardCondition.GOOD
    return matched


def convert_to_usd(
    price: float,
    currency: str | None,
    rates: dict[str, float] = CURRENCY_RATES,
) -> tuple[float, bool]:
    """Convert ``price`` to USD.

    Returns:
        (converted price, whether the currency code was recognized).
        Unrecognized codes return the price unchanged.
    """
    code = (currency or "USD").strip().upper()
    rate = rates.get(code)
    if rate is None:
        return price, False
    return price * rate, True


def normalize(
    observations: list[RawObservation],
    rates: dict[str, float] = CURRENCY_RATES,
    sink: EventSink = emit_event,
) -> list[NormalizedObservation]:
    """Normalize raw observations, dropping unusable records.

    Args:
        observations: Raw observations from any mix of providers
        rates: USD conversion table
        sink: Observability event sink for drop counts

    Returns:
        Observations with finite, positive USD prices
    """
    normalized: list[NormalizedObservation] = []
    dropped = 0
    unknown_currencies: set[str] = set()

    for obs in observations:
        if not isinstance(obs.observed_date, datetime):
            dropped += 1
            continue

        try:
            price = float(obs.price)
            if not math.isfinite(price) or price <= 0:
                dropped += 1
                continue

            price_usd, known = convert_to_usd(price, obs.currency, rates)
            if not known:
                unknown_currencies.add(str(obs.currency))
            if not math.isfinite(price_usd) or price_usd <= 0:
                dropped += 1
                continue

            normalized.append(NormalizedObservation(
                source=obs.source,
                price_usd=price_usd,
                standard_condition=standardize_condition(obs.condition),
                observed_date=obs.observed_date,
                listing_url=obs.listing_url,
            ))
        except (TypeError, ValueError, AttributeError) as e:
            logger.debug("Failed to normalize observation %r: %s", obs, e)
            dropped += 1

    for code in sorted(unknown_currencies):
        logger.warning("Unknown currency %s, assuming USD", code)

    if dropped:
        sink(OBSERVATIONS_DROPPED, {
            "dropped": dropped,
            "received": len(observations),
        })

    logger.info(
        "Normalized %d observations from %d raw observations",
        len(normalized), len(observations),
    )
    return normalized
