"""
KESTREL CORE v1.0 - Statistics Library
=======================================

Pure functions over numeric sequences used by the pairs engine,
the scanner and the risk engine.

    ols_regression      y = alpha + beta * x, closed form
    adf_test            simplified Dickey-Fuller stationarity test
    half_life           Ornstein-Uhlenbeck mean-reversion half-life
    johansen_test       2-variable Johansen cointegration rank
    pearson_correlation guarded Pearson correlation
    z_score             trailing z-score of the last value
    simple_returns      bar-over-bar simple returns

None of these raise on short, flat or degenerate input. They return
None, a neutral value, or a result object carrying a reason.

ADF limitation:
    The test uses a single lag, a constant-only regression and fixed
    (not interpolated) critical values of -3.51 / -2.89 / -2.58. It is
    an approximation; downstream thresholds are tuned against it.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from .constants import (
    ADF_CRITICAL_VALUES,
    ADF_MIN_OBSERVATIONS,
    ADF_PVALUE_FLOOR,
    ADF_PVALUE_TABLE,
    EPSILON,
    HALF_LIFE_MIN_OBSERVATIONS,
    JOHANSEN_MAX_EIGEN_CRITICAL_5,
    JOHANSEN_MIN_OBSERVATIONS,
    JOHANSEN_TRACE_CRITICAL_5,
    STATIONARITY_PVALUE,
)

logger = logging.getLogger("KESTREL_Statistics")


@dataclass(frozen=True)
class OLSResult:
    """Least-squares fit of y on x."""

    alpha: float
    beta: float
    r_squared: float
    residuals: np.ndarray = field(repr=False, compare=False)


@dataclass(frozen=True)
class ADFResult:
    """Outcome of the simplified ADF test."""

    statistic: float
    p_value: float
    is_stationary: bool
    n_obs: int
    critical_values: Dict[str, float] = field(
        default_factory=lambda: dict(ADF_CRITICAL_VALUES)
    )


@dataclass(frozen=True)
class JohansenResult:
    """Outcome of the 2-variable Johansen test."""

    rank: int
    trace_stats: Tuple[float, float] = (0.0, 0.0)
    max_eigen_stats: Tuple[float, float] = (0.0, 0.0)
    eigenvalues: Tuple[float, float] = (0.0, 0.0)
    reason: Optional[str] = None

    @property
    def is_cointegrated(self) -> bool:
        return self.rank >= 1


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float).ravel()


def _align(x: Sequence[float], y: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """Trim two series to their trailing common length."""
    x_arr = _as_array(x)
    y_arr = _as_array(y)
    n = min(len(x_arr), len(y_arr))
    if n == 0:
        return x_arr[:0], y_arr[:0]
    return x_arr[-n:], y_arr[-n:]


def _is_zero(value: float, scale: float = 1.0) -> bool:
    return abs(value) <= EPSILON * max(1.0, abs(scale))


# =============================================================================
# REGRESSION
# =============================================================================


def ols_regression(x: Sequence[float], y: Sequence[float]) -> Optional[OLSResult]:
    """
    Ordinary least squares fit of y = alpha + beta * x.

    Args:
        x: Regressor
        y: Dependent variable (aligned on the trailing common length)

    Returns:
        OLSResult, or None with fewer than 3 points or a constant regressor
    """
    x_arr, y_arr = _align(x, y)
    n = len(x_arr)
    if n < 3:
        return None

    x_mean = x_arr.mean()
    y_mean = y_arr.mean()
    dx = x_arr - x_mean
    dy = y_arr - y_mean

    sxx = float(np.dot(dx, dx))
    if _is_zero(sxx, float(np.dot(x_arr, x_arr))):
        return None

    beta = float(np.dot(dx, dy)) / sxx
    alpha = float(y_mean - beta * x_mean)
    residuals = y_arr - (alpha + beta * x_arr)

    ss_total = float(np.dot(dy, dy))
    ss_resid = float(np.dot(residuals, residuals))
    if _is_zero(ss_total, float(np.dot(y_arr, y_arr))):
        r_squared = 0.0
    else:
        r_squared = 1.0 - ss_resid / ss_total

    return OLSResult(alpha=alpha, beta=beta, r_squared=r_squared, residuals=residuals)


# =============================================================================
# STATIONARITY
# =============================================================================


def adf_p_value(statistic: float) -> float:
    """Step p-value for an ADF statistic from the fixed critical table."""
    for bound, p_value in ADF_PVALUE_TABLE:
        if statistic <= bound:
            return p_value
    return ADF_PVALUE_FLOOR


def adf_test(series: Sequence[float]) -> ADFResult:
    """
    Simplified Dickey-Fuller test: regress diff(s) on lagged s (demeaned).

    Returns:
        ADFResult; short (< 20 points) or degenerate input reports
        statistic 0, p-value 1 and is_stationary False
    """
    values = _as_array(series)
    n = len(values)
    neutral = ADFResult(statistic=0.0, p_value=1.0, is_stationary=False, n_obs=n)
    if n < ADF_MIN_OBSERVATIONS:
        return neutral

    lagged = values[:-1]
    delta = np.diff(values)
    m = len(delta)

    x = lagged - lagged.mean()
    y = delta - delta.mean()

    sum_x2 = float(np.dot(x, x))
    if _is_zero(sum_x2, float(np.dot(lagged, lagged))):
        logger.debug(f"ADF: flat lagged series (n={n})")
        return neutral

    gamma = float(np.dot(x, y)) / sum_x2
    resid = y - gamma * x
    sse = float(np.dot(resid, resid))
    se = math.sqrt(sse / ((m - 2) * sum_x2))
    if _is_zero(se):
        logger.debug(f"ADF: zero standard error (n={n})")
        return neutral

    # p-value from the raw statistic; only the reported value is rounded
    t_stat = gamma / se
    p_value = adf_p_value(t_stat)

    return ADFResult(
        statistic=round(t_stat, 2),
        p_value=p_value,
        is_stationary=p_value <= STATIONARITY_PVALUE,
        n_obs=n,
    )


def half_life(spread: Sequence[float]) -> Optional[float]:
    """
    Mean-reversion half-life in bars, from diff(s) = theta * s_lag.

    Returns:
        -ln(2) / theta, or None with < 20 points or theta >= 0
    """
    values = _as_array(spread)
    if len(values) < HALF_LIFE_MIN_OBSERVATIONS:
        return None

    lagged = values[:-1]
    delta = np.diff(values)
    denom = float(np.dot(lagged, lagged))
    if _is_zero(denom):
        return None

    theta = float(np.dot(lagged, delta)) / denom
    if theta >= 0:
        return None
    return -math.log(2) / theta


# =============================================================================
# COINTEGRATION
# =============================================================================


def _eigenvalues_2x2(matrix: np.ndarray) -> Tuple[float, float]:
    """Real eigenvalues of a 2x2 matrix from its trace and determinant."""
    trace = float(matrix[0, 0] + matrix[1, 1])
    det = float(matrix[0, 0] * matrix[1, 1] - matrix[0, 1] * matrix[1, 0])
    disc = max(trace * trace - 4.0 * det, 0.0)
    root = math.sqrt(disc)
    return (trace + root) / 2.0, (trace - root) / 2.0


def johansen_test(
    series_a: Sequence[float], series_b: Sequence[float]
) -> JohansenResult:
    """
    Johansen trace / max-eigenvalue test for two series, VAR(1) with constant.

    The residual moment matrices S00, S11, S01 are built from the
    demeaned differences and demeaned lagged levels; the eigenvalues of
    S11^-1 S10 S00^-1 S01 are solved in closed form. Rank is decided by
    the trace statistics against the Osterwald-Lenum 5% values.

    Returns:
        JohansenResult; fewer than 40 observations or a singular moment
        matrix report rank 0 with a reason
    """
    a, b = _align(series_a, series_b)
    n = len(a)
    if n < JOHANSEN_MIN_OBSERVATIONS:
        return JohansenResult(
            rank=0,
            reason=f"insufficient data: {n} < {JOHANSEN_MIN_OBSERVATIONS} observations",
        )

    levels = np.column_stack([a, b])
    r0 = np.diff(levels, axis=0)
    r1 = levels[:-1]
    r0 = r0 - r0.mean(axis=0)
    r1 = r1 - r1.mean(axis=0)
    m = len(r0)

    s00 = r0.T @ r0 / m
    s11 = r1.T @ r1 / m
    s01 = r0.T @ r1 / m
    s10 = s01.T

    det00 = float(np.linalg.det(s00))
    det11 = float(np.linalg.det(s11))
    if _is_zero(det00, float(np.trace(s00)) ** 2) or _is_zero(
        det11, float(np.trace(s11)) ** 2
    ):
        logger.debug(f"Johansen: singular moment matrix (n={n})")
        return JohansenResult(rank=0, reason="singular moment matrix")

    product = np.linalg.solve(s11, s10) @ np.linalg.solve(s00, s01)
    lam1, lam2 = _eigenvalues_2x2(product)
    lam1 = min(max(lam1, 0.0), 1.0 - 1e-12)
    lam2 = min(max(lam2, 0.0), 1.0 - 1e-12)

    log1 = math.log(1.0 - lam1)
    log2 = math.log(1.0 - lam2)
    trace_stats = (-m * (log1 + log2), -m * log2)
    max_eigen_stats = (-m * log1, -m * log2)

    rank = 0
    for stat, critical in zip(trace_stats, JOHANSEN_TRACE_CRITICAL_5):
        if stat < critical:
            break
        rank += 1

    return JohansenResult(
        rank=rank,
        trace_stats=trace_stats,
        max_eigen_stats=max_eigen_stats,
        eigenvalues=(lam1, lam2),
    )


def johansen_max_eigen_rank(result: JohansenResult) -> int:
    """Rank implied by the max-eigenvalue statistics of a Johansen result."""
    rank = 0
    for stat, critical in zip(result.max_eigen_stats, JOHANSEN_MAX_EIGEN_CRITICAL_5):
        if stat < critical:
            break
        rank += 1
    return rank


# =============================================================================
# DESCRIPTIVE
# =============================================================================


def pearson_correlation(
    x: Sequence[float], y: Sequence[float], min_length: int = 5
) -> float:
    """Pearson correlation on the trailing common length; 0.0 when undefined."""
    x_arr, y_arr = _align(x, y)
    if len(x_arr) < min_length:
        return 0.0

    dx = x_arr - x_arr.mean()
    dy = y_arr - y_arr.mean()
    denom = math.sqrt(float(np.dot(dx, dx)) * float(np.dot(dy, dy)))
    if _is_zero(denom):
        return 0.0
    return float(np.clip(np.dot(dx, dy) / denom, -1.0, 1.0))


def z_score(series: Sequence[float], period: int) -> Optional[float]:
    """Z-score of the last value against the trailing window (population std)."""
    values = _as_array(series)
    if period < 2 or len(values) < period:
        return None

    window = values[-period:]
    std = float(window.std())
    if _is_zero(std, float(np.abs(window).max())):
        return 0.0
    return float((window[-1] - window.mean()) / std)


def simple_returns(values: Sequence[float]) -> np.ndarray:
    """Bar-over-bar simple returns; a zero previous value gives a 0 return."""
    arr = _as_array(values)
    if len(arr) < 2:
        return np.zeros(0)

    prev = arr[:-1]
    safe_prev = np.where(prev == 0, 1.0, prev)
    returns = (arr[1:] - prev) / safe_prev
    return np.where(prev == 0, 0.0, returns)


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "OLSResult",
    "ADFResult",
    "JohansenResult",
    "ols_regression",
    "adf_p_value",
    "adf_test",
    "half_life",
    "johansen_test",
    "johansen_max_eigen_rank",
    "pearson_correlation",
    "z_score",
    "simple_returns",
]
