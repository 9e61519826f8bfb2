"""
Numeric primitives shared by every analysis stage.

All functions are pure. Callers guard against empty input where the
statistic is undefined (EmptyInputError is raised, never NaN returned).
"""

from typing import Iterable

import numpy as np

from ebb.errors import EmptyInputError


def _as_array(xs: Iterable[float], name: str) -> np.ndarray:
    values = np.asarray(list(xs), dtype=np.float64)
    if values.size == 0:
        raise EmptyInputError(f"{name}() requires at least one value")
    return values


def mean(xs: Iterable[float]) -> float:
    """Arithmetic mean."""
    return float(_as_array(xs, "mean").mean())


def variance(xs: Iterable[float]) -> float:
    """
    Dispersion used by the energy detectors.

    Computed as sqrt(mean((x - mean)²)), i.e. the population standard
    deviation. The name is kept because insight thresholds are tuned
    against this exact quantity.
    """
    values = _as_array(xs, "variance")
    centered = values - values.mean()
    return float(np.sqrt(np.dot(centered, centered) / values.size))


def correlation(xs: Iterable[float], ys: Iterable[float]) -> float:
    """
    Pearson correlation coefficient over paired samples.

    Returns 0.0 when either series has no spread (zero denominator),
    so downstream arithmetic stays total. Clamped to [-1, 1].
    """
    x = _as_array(xs, "correlation")
    y = _as_array(ys, "correlation")
    if x.size != y.size:
        raise ValueError(f"correlation() needs paired samples, got {x.size} and {y.size}")

    x_c = x - x.mean()
    y_c = y - y.mean()
    denom = np.sqrt(np.dot(x_c, x_c) * np.dot(y_c, y_c))
    if denom < 1e-12:
        return 0.0
    return float(np.clip(np.dot(x_c, y_c) / denom, -1.0, 1.0))


def confidence_from_sample_size(
    n: int,
    min_samples: int = 5,
    max_samples: int = 50,
) -> float:
    """Linear ramp: 0 at n <= min_samples, 1 at n >= max_samples."""
    if max_samples <= min_samples:
        return 1.0 if n >= max_samples else 0.0
    raw = (n - min_samples) / (max_samples - min_samples)
    return float(np.clip(raw, 0.0, 1.0))
