"""Example 1: Basic Valuation

This example shows the core of PRICEFUSE without any network access:
normalizing a mixed batch of observations and fusing them into one
valuation.

For demonstration purposes, this uses synthetic observations.
In production, providers fetch them from eBay, TCGPlayer and PriceCharting.
"""

import json
from datetime import datetime, timedelta, timezone

import numpy as np

from pricefuse.engine import fuse, normalize
from pricefuse.models import PriceQuery, RawObservation


def generate_synthetic_observations(seed: int = 7) -> list[RawObservation]:
    """Three sources around $50, plus one wild listing."""
    rng = np.random.default_rng(seed)
    now = datetime.now(timezone.utc)
    observations = []

    for source, currency, scale, count in [
        ("eBay", "USD", 1.0, 12),
        ("TCGPlayer", "USD", 1.0, 8),
        ("eBay-UK", "GBP", 1 / 1.27, 6),
    ]:
        for i in range(count):
            observations.append(RawObservation(
                source=source,
                price=float(rng.normal(50, 3)) * scale,
                currency=currency,
                condition="Near Mint",
                observed_date=now - timedelta(days=i),
            ))

    observations.append(RawObservation(
        source="eBay",
        price=499.0,
        currency="USD",
        condition="Gem Mint 10",
        observed_date=now,
    ))
    return observations


def main():
    """Run basic valuation example."""
    print("=" * 60)
    print("PRICEFUSE — Example 1: Basic Valuation")
    print("=" * 60)
    print()

    # Step 1: Synthetic observations
    print("Step 1: Generating synthetic observations...")
    raw = generate_synthetic_observations()
    print(f"  ✓ Generated {len(raw)} raw observations")
    print()

    # Step 2: Normalize to USD and the standard condition scale
    print("Step 2: Normalizing...")
    normalized = normalize(raw)
    print(f"  ✓ {len(normalized)} usable observations")
    print()

    # Step 3: Fuse
    print("Step 3: Fusing...")
    query = PriceQuery(item_name="Charizard", set_name="Base Set", number="4", window_days=30)
    result = fuse(normalized, query)

    print(f"  ✓ Median: ${result.value_median:,.2f}")
    print(f"  ✓ Range:  ${result.value_low:,.2f} – ${result.value_high:,.2f}")
    print(f"  ✓ Kept {result.observation_count} of {len(normalized)} observations")
    print(f"  ✓ Confidence {result.confidence:.2f}, volatility {result.volatility:.3f}")
    print()

    # Step 4: Structured output (JSON)
    print("=" * 60)
    print("STRUCTURED OUTPUT (for programmatic use)")
    print("=" * 60)
    print()
    print(json.dumps(result.to_dict(), indent=2))


if __name__ == '__main__':
    main()
