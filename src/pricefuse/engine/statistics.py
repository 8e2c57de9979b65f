"""Robust price statistics: interpolated percentiles, IQR filter, dispersion.

All functions are pure. Percentiles use linear interpolation between
ranks (numpy's default "linear" method), so P(q) for sorted prices x of
length n is x[i] + (x[i+1] - x[i]) * frac where i + frac = q/100 * (n - 1).
"""

import numpy as np

# Minimum sample size for IQR outlier removal
IQR_MIN_OBSERVATIONS = 4
IQR_MULTIPLIER = 1.5


def percentile(sorted_prices: list[float] | np.ndarray, q: float) -> float:
    """Linear-interpolated percentile of an ascending price array.

    Args:
        sorted_prices: Prices sorted ascending
        q: Percentile in [0, 100]

    Returns:
        Interpolated value; 0.0 for an empty array
    """
    values = np.asarray(sorted_prices, dtype=float)
    if values.size == 0:
        return 0.0
    if values.size == 1:
        return float(values[0])
    return float(np.percentile(values, q, method="linear"))


def iqr_bounds(sorted_prices: list[float] | np.ndarray) -> tuple[float, float]:
    """Outlier fences [Q1 - 1.5·IQR, Q3 + 1.5·IQR]."""
    q1 = percentile(sorted_prices, 25)
    q3 = percentile(sorted_prices, 75)
    iqr = q3 - q1
    return q1 - IQR_MULTIPLIER * iqr, q3 + IQR_MULTIPLIER * iqr


def iqr_mask(prices: list[float] | np.ndarray) -> np.ndarray:
    """Boolean mask of prices inside the IQR fences (input order kept).

    Samples smaller than IQR_MIN_OBSERVATIONS are kept whole.
    """
    values = np.asarray(prices, dtype=float)
    if values.size < IQR_MIN_OBSERVATIONS:
        return np.ones(values.size, dtype=bool)
    lower, upper = iqr_bounds(np.sort(values))
    return (values >= lower) & (values <= upper)


def coefficient_of_variation(prices: list[float] | np.ndarray) -> float | None:
    """Population stddev / mean.

    CV is scale-free, so it is computed on the prices divided by their
    largest magnitude; sums near the float ceiling cannot overflow.

    Returns:
        CV, or None when the sample is empty, non-finite or its mean is
        not positive
    """
    values = np.asarray(prices, dtype=float)
    if values.size == 0 or not np.all(np.isfinite(values)):
        return None
    peak = float(np.max(np.abs(values)))
    if peak == 0:
        return None
    scaled = values / peak
    mean = float(scaled.mean())
    if mean <= 0:
        return None
    cv = float(scaled.std(ddof=0)) / mean
    return cv if np.isfinite(cv) else None


def volatility(prices: list[float] | np.ndarray) -> float:
    """Coefficient of variation, 0.0 when undefined."""
    cv = coefficient_of_variation(prices)
    return cv if cv is not None else 0.0


def confidence(
    prices: list[float] | np.ndarray,
    sample_weight: float = 0.6,
    dispersion_weight: float = 0.4,
    sample_size: int = 50,
) -> float:
    """Trust score in [0, 1] from sample size and price dispersion.

    confidence = sample_weight · min(n / sample_size, 1)
               + dispersion_weight · max(0, 1 - CV)

    A sample whose CV is undefined gets CV = 1, i.e. no dispersion credit.
    """
    values = np.asarray(prices, dtype=float)
    if values.size == 0:
        return 0.0

    sample_factor = min(values.size / sample_size, 1.0)
    cv = coefficient_of_variation(values)
    dispersion_factor = max(0.0, 1.0 - (cv if cv is not None else 1.0))

    score = sample_weight * sample_factor + dispersion_weight * dispersion_factor
    return max(0.0, min(1.0, score))
