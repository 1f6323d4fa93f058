"""
Advanced Statistics Module for Match Analysis
=============================================
Numeric building blocks shared by the feature extractors and Model V1:
- Recency-weighted averages with exponential decay
- Coefficient of variation
- Poisson probability mass
- Clamping, rounding and logistic split helpers

Author: Football Analytics System
Version: 1.0 - Model V1
"""

import math
from typing import List, Sequence

import numpy as np
from scipy import stats


def clamp(value: float, low: float, high: float) -> float:
    """Limit value to the closed range [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def mean_or_default(values: Sequence[float], default: float) -> float:
    """Plain mean, or default for an empty sequence."""
    return sum(values) / len(values) if values else default


def decay_weights(n: int, decay: float) -> np.ndarray:
    """
    Exponential recency weights.

    Args:
        n: Number of observations
        decay: Per-step decay factor (e.g. 0.8)

    Returns:
        Array [1, decay, decay^2, ...] of length n, most recent first
    """
    return np.power(decay, np.arange(n, dtype=float))


def recency_weighted_average(values: Sequence[float], decay: float) -> float:
    """
    Weighted average with weight decay^index.

    Args:
        values: Values ordered most recent first
        decay: Per-step decay factor

    Returns:
        Weighted average, 0.0 for an empty sequence
    """
    if len(values) == 0:
        return 0.0

    weighted_sum = 0.0
    total_weight = 0.0
    for value, weight in zip(values, decay_weights(len(values), decay)):
        weighted_sum += value * weight
        total_weight += weight

    return float(weighted_sum / total_weight) if total_weight > 0 else 0.0


def calculate_coefficient_of_variation(values: Sequence[float], zero_mean_value: float = 1.0) -> float:
    """
    Calculate coefficient of variation (CV = σ/μ) with the population σ.

    Measures relative variability - lower CV means more consistent scoring.

    Args:
        values: List of numerical values
        zero_mean_value: CV reported when the mean is not positive

    Returns:
        Coefficient of variation
    """
    if len(values) == 0:
        return zero_mean_value

    data = np.asarray(values, dtype=float)
    mean = float(np.mean(data))
    if mean <= 0:
        return zero_mean_value

    return float(np.std(data)) / mean


def poisson_probability(k: int, lambda_: float) -> float:
    """
    Calculate Poisson probability P(X = k).

    A non-positive mean puts all of the mass on zero goals.

    Args:
        k: Number of goals
        lambda_: Expected value

    Returns:
        Probability of exactly k goals
    """
    if lambda_ <= 0:
        return 1.0 if k == 0 else 0.0
    return float(stats.poisson.pmf(k, lambda_))


def logistic(x: float) -> float:
    """Standard logistic function 1 / (1 + e^-x)."""
    return 1.0 / (1.0 + math.exp(-x))


def result_change_rate(results: List[int], decay: float = 0.9) -> float:
    """
    Recency-weighted share of consecutive results that differ.

    Args:
        results: Result codes (1 win, 0 draw, -1 loss) ordered most recent first
        decay: Weight decay per step back in time

    Returns:
        Weighted fraction of result changes in [0, 1]; 0.5 with fewer than two results
    """
    weighted_changes = 0.0
    total_weight = 0.0

    for i in range(1, len(results)):
        weight = decay ** (i - 1)
        if results[i] != results[i - 1]:
            weighted_changes += weight
        total_weight += weight

    return weighted_changes / total_weight if total_weight > 0 else 0.5
