import math

from scipy.stats import poisson

from smart_reliability.interface import Interval

# Event counts asked of the Poisson engine are bounded by the redundancy of
# an array, so they stay tiny. Direct factorials are exact in a double up to
# 22! and well within range far beyond this bound.
MAX_POISSON_EVENTS = 64


def _check_rate(rate: float) -> None:
    if not rate >= 0:
        raise ValueError(f"Poisson rate must be a non-negative number, got {rate}")


def factorial(k: int) -> float:
    assert 0 <= k <= MAX_POISSON_EVENTS, f"k={k} outside [0, {MAX_POISSON_EVENTS}]"
    v = 1.0
    while k > 1:
        v *= k
        k -= 1
    return v


def poisson_pmf(rate: float, k: int) -> float:
    """Probability of exactly k events in a year at `rate` events per year"""
    _check_rate(rate)
    return rate**k * math.exp(-rate) / factorial(k)


def poisson_at_least(rate: float, n: int) -> float:
    """Probability of n or more events in a year at `rate` events per year

    This is 1 - P(0) - P(1) - ... - P(n - 1). For n = 1 it is 1 - e^-rate,
    computed with expm1 so rates near zero (the failure rate of a multi
    parity array) do not round down to a probability of zero.
    """
    _check_rate(rate)
    assert 0 <= n <= MAX_POISSON_EVENTS, f"n={n} outside [0, {MAX_POISSON_EVENTS}]"
    if n == 0:
        return 1.0
    if n == 1:
        return -math.expm1(-rate)

    p_fewer = 0.0
    for k in range(n - 1, -1, -1):
        p_fewer += poisson_pmf(rate, k)
    return 1 - p_fewer


def failure_count_interval(rate: float, confidence: float = 0.9) -> Interval:
    """How many failures to expect in the next year

    Returns the symmetric Poisson quantiles around the median for the given
    confidence, e.g. with 0.9 the 5th, 50th and 95th percentile counts.
    """
    _check_rate(rate)
    confidence = min(confidence, 0.99)
    confidence = max(confidence, 0.01)
    if rate == 0:
        return Interval(low=0, mid=0, high=0, confidence=confidence)

    low_p = 0 + (1 - confidence) / 2.0
    high_p = 1 - (1 - confidence) / 2.0
    low, mid, high = poisson.ppf([low_p, 0.5, high_p], rate)
    return Interval(
        low=float(low), mid=float(mid), high=float(high), confidence=confidence
    )
