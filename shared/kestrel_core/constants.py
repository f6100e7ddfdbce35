"""
KESTREL CORE v1.0 - System Constants
=====================================

Centralized constants for the KESTREL quantitative core.
All magic numbers shared between engines are defined here.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

# =============================================================================
# SYSTEM IDENTIFICATION
# =============================================================================

VERSION = "1.0.0"
SYSTEM_NAME = "KESTREL CORE"

# =============================================================================
# ANNUALIZATION & UNITS
# =============================================================================

TRADING_DAYS_PER_YEAR = 252

# 1 basis point = 0.01%
BPS = 10_000.0

# Values with absolute magnitude below this are treated as zero
EPSILON = 1e-12

# =============================================================================
# ADF TEST (single lag, constant only)
# =============================================================================

ADF_MIN_OBSERVATIONS = 20

ADF_CRITICAL_VALUES = {
    "1%": -3.51,
    "5%": -2.89,
    "10%": -2.58,
}

# (statistic upper bound, p-value) steps, checked in order
ADF_PVALUE_TABLE = (
    (-3.51, 0.01),
    (-2.89, 0.05),
    (-2.58, 0.10),
    (-1.95, 0.30),
)
ADF_PVALUE_FLOOR = 0.50

STATIONARITY_PVALUE = 0.05

# =============================================================================
# JOHANSEN TEST (2 variables, constant, Osterwald-Lenum 5%)
# =============================================================================

JOHANSEN_MIN_OBSERVATIONS = 40

# Indexed by null hypothesis rank r = 0, 1
JOHANSEN_TRACE_CRITICAL_5 = (15.41, 3.76)
JOHANSEN_MAX_EIGEN_CRITICAL_5 = (14.07, 3.76)

# =============================================================================
# HURST EXPONENT
# =============================================================================

HURST_MIN_LAG = 10
HURST_LAG_STEP = 2
HURST_DEFAULT_MAX_LAG = 20

HURST_MEAN_REVERTING_THRESHOLD = 0.5  # H < this = mean reverting
HURST_TRENDING_THRESHOLD = 0.6  # H >= this = trending (pair rejected)
HURST_BORDERLINE_PENALTY = 0.5  # Confidence multiplier in the borderline band

HALF_LIFE_MIN_OBSERVATIONS = 20

# =============================================================================
# KELLY SIZING
# =============================================================================

REGIME_KELLY_FRACTIONS = {
    "bull_low_vol": 0.50,
    "bear_high_vol": 0.25,
    "range_bound": 0.40,
    "uncertain": 0.20,
}

# strategy -> (win rate, payoff ratio) used before enough trades exist
STRATEGY_KELLY_DEFAULTS = {
    "mean_reversion": (0.62, 1.2),
    "momentum": (0.55, 2.0),
    "pairs_trading": (0.55, 1.5),
    "sentiment_momentum": (0.58, 1.3),
}

ADAPTIVE_KELLY_MIN_FRACTION = 0.20
ADAPTIVE_KELLY_MAX_FRACTION = 0.50

MIN_TRADES_FOR_KELLY = 10
MIN_TRADES_FOR_BOOTSTRAP = 15

# Volatility that maps to a full-size position
TARGET_DAILY_VOLATILITY = 0.02

# =============================================================================
# TAIL RISK
# =============================================================================

MIN_RETURNS_FOR_VAR = 10

VAR_Z_SCORES = {
    0.90: 1.282,
    0.95: 1.645,
    0.99: 2.326,
}

# =============================================================================
# BACKTEST
# =============================================================================

MIN_POINTS_FOR_PERMUTATION = 10

# Shuffled Sharpe values within this distance of the observed one count as ties
SHARPE_TIE_TOLERANCE = 1e-9


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "VERSION",
    "SYSTEM_NAME",
    "TRADING_DAYS_PER_YEAR",
    "BPS",
    "EPSILON",
    "ADF_MIN_OBSERVATIONS",
    "ADF_CRITICAL_VALUES",
    "ADF_PVALUE_TABLE",
    "ADF_PVALUE_FLOOR",
    "STATIONARITY_PVALUE",
    "JOHANSEN_MIN_OBSERVATIONS",
    "JOHANSEN_TRACE_CRITICAL_5",
    "JOHANSEN_MAX_EIGEN_CRITICAL_5",
    "HURST_MIN_LAG",
    "HURST_LAG_STEP",
    "HURST_DEFAULT_MAX_LAG",
    "HURST_MEAN_REVERTING_THRESHOLD",
    "HURST_TRENDING_THRESHOLD",
    "HURST_BORDERLINE_PENALTY",
    "HALF_LIFE_MIN_OBSERVATIONS",
    "REGIME_KELLY_FRACTIONS",
    "STRATEGY_KELLY_DEFAULTS",
    "ADAPTIVE_KELLY_MIN_FRACTION",
    "ADAPTIVE_KELLY_MAX_FRACTION",
    "MIN_TRADES_FOR_KELLY",
    "MIN_TRADES_FOR_BOOTSTRAP",
    "TARGET_DAILY_VOLATILITY",
    "MIN_RETURNS_FOR_VAR",
    "VAR_Z_SCORES",
    "MIN_POINTS_FOR_PERMUTATION",
    "SHARPE_TIE_TOLERANCE",
]
