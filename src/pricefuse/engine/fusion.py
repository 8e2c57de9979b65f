"""Fusion: normalized observations → one ValuationResult.

Steps:
1. IQR outlier removal (skipped below 4 observations; falls back to the
   unfiltered set if it would remove everything)
2. Interpolated 10th/50th/90th percentiles → low / median / high
3. Confidence from sample size and coefficient of variation
4. Volatility = coefficient of variation

`fuse` is pure and deterministic: the same input always yields an equal
result. It raises only for an empty input.
"""

import logging
from dataclasses import dataclass

import numpy as np

from pricefuse.config import Settings
from pricefuse.engine.statistics import confidence, iqr_bounds, iqr_mask, percentile, volatility
from pricefuse.models import NormalizedObservation, PriceQuery, ValuationResult
from pricefuse.observability import OUTLIERS_REMOVED, EventSink, emit_event

logger = logging.getLogger(__name__)


class EmptyObservationsError(ValueError):
    """Raised when fusion is asked to value an empty observation set."""


@dataclass(frozen=True)
class FusionConfig:
    """Confidence-score tunables.

    Attributes:
        sample_weight: Weight of the sample-size factor
        dispersion_weight: Weight of the (1 - CV) factor
        sample_size: Observation count at which the sample-size factor saturates
    """

    sample_weight: float = 0.6
    dispersion_weight: float = 0.4
    sample_size: int = 50

    @classmethod
    def from_settings(cls, settings: Settings) -> "FusionConfig":
        return cls(
            sample_weight=settings.confidence_sample_weight,
            dispersion_weight=settings.confidence_dispersion_weight,
            sample_size=settings.confidence_sample_size,
        )


def remove_outliers(
    observations: list[NormalizedObservation],
    sink: EventSink = emit_event,
) -> list[NormalizedObservation]:
    """Drop observations outside the IQR fences.

    Returns the input unchanged below 4 observations. Never returns more
    observations than it received; may return an empty list.
    """
    prices = np.array([o.price_usd for o in observations], dtype=float)
    keep = iqr_mask(prices)
    filtered = [o for o, k in zip(observations, keep) if k]

    removed = len(observations) - len(filtered)
    if removed > 0:
        lower, upper = iqr_bounds(np.sort(prices))
        sink(OUTLIERS_REMOVED, {
            "removed": removed,
            "original_count": len(observations),
            "filtered_count": len(filtered),
            "lower_bound": round(lower, 4),
            "upper_bound": round(upper, 4),
        })
    return filtered


def fuse(
    observations: list[NormalizedObservation],
    query: PriceQuery,
    config: FusionConfig | None = None,
    sink: EventSink = emit_event,
) -> ValuationResult:
    """Fuse normalized observations into a valuation.

    Args:
        observations: Normalized observations from all providers
        query: The query being valued (supplies window_days)
        config: Confidence tunables (default: FusionConfig())
        sink: Observability event sink

    Returns:
        ValuationResult over the retained observations

    Raises:
        EmptyObservationsError: If ``observations`` is empty
    """
    if not observations:
        raise EmptyObservationsError("Cannot fuse an empty observation set")

    config = config or FusionConfig()

    retained = remove_outliers(observations, sink=sink)
    if not retained:
        logger.warning("All observations were filtered as outliers, using original data")
        retained = list(observations)

    prices = np.sort(np.array([o.price_usd for o in retained], dtype=float))

    value_low = percentile(prices, 10)
    value_median = max(percentile(prices, 50), value_low)
    value_high = max(percentile(prices, 90), value_median)

    return ValuationResult(
        value_low=value_low,
        value_median=value_median,
        value_high=value_high,
        observation_count=len(retained),
        window_days=query.window_days,
        sources={o.source for o in retained},
        confidence=confidence(
            prices,
            sample_weight=config.sample_weight,
            dispersion_weight=config.dispersion_weight,
            sample_size=config.sample_size,
        ),
        volatility=volatility(prices),
    )
