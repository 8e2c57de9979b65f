"""Normalization & fusion engine for PRICEFUSE.

Modules:
    - normalize: currency conversion, condition classification, record filtering
    - statistics: interpolated percentiles, IQR fences, CV, confidence
    - fusion: outlier removal → percentiles → confidence/volatility
"""

from pricefuse.engine.normalize import (
    CURRENCY_RATES,
    classify_condition,
    convert_to_usd,
    normalize,
    standardize_condition,
)
from pricefuse.engine.statistics import (
    coefficient_of_variation,
    confidence,
    iqr_bounds,
    percentile,
    volatility,
)
from pricefuse.engine.fusion import (
    EmptyObservationsError,
    FusionConfig,
    fuse,
    remove_outliers,
)

__all__ = [
    "CURRENCY_RATES",
    "classify_condition",
    "convert_to_usd",
    "normalize",
    "standardize_condition",
    "coefficient_of_variation",
    "confidence",
    "iqr_bounds",
    "percentile",
    "volatility",
    "EmptyObservationsError",
    "FusionConfig",
    "fuse",
    "remove_outliers",
]
