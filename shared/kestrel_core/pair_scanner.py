"""
KESTREL CORE v1.0 - Pair Universe Scanner
==========================================

Ranks every unordered pair of a symbol universe by cointegration quality.

Pipeline per pair (O(n^2) pairs):
    1. Level correlation pre-filter: |corr| >= min_correlation
    2. Full battery (ADF, Hurst, half-life, Johansen) on the survivors
    3. Stationary spreads are scored and kept

Composite score (weights sum to 1 by default):
    0.40 * clip(-adf / (2 * 3.51), 0, 1)        ADF strength
    0.25 * clip((0.6 - hurst) / 0.6, 0, 1)      Hurst quality
    0.20 * 1 / (1 + |hl - 10| / 10)             half-life proximity
    0.15 * (1 if johansen_rank >= 1 else 0)     Johansen bonus

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from itertools import combinations
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .cointegration import CointegrationResult, evaluate_cointegration
from .constants import ADF_CRITICAL_VALUES, HURST_TRENDING_THRESHOLD
from .correlation_tracker import CorrelationConfig, CorrelationTracker
from .exceptions import require
from .models import extract_closes

logger = logging.getLogger("KESTREL_PairScanner")


@dataclass
class ScannerConfig:
    """Configuration for the pair scanner."""

    min_correlation: float = 0.5
    min_data_points: int = 60
    hedge_ratio_lookback: int = 60
    max_results: Optional[int] = None

    # Score weights
    adf_weight: float = 0.40
    hurst_weight: float = 0.25
    half_life_weight: float = 0.20
    johansen_weight: float = 0.15

    target_half_life: float = 10.0

    def __post_init__(self):
        require(
            0.0 <= self.min_correlation <= 1.0,
            "min_correlation must be in [0, 1]",
            "min_correlation",
            self.min_correlation,
        )
        require(
            self.min_data_points >= 3,
            "min_data_points must be >= 3",
            "min_data_points",
            self.min_data_points,
        )
        require(
            self.target_half_life > 0,
            "target_half_life must be positive",
            "target_half_life",
            self.target_half_life,
        )
        weights = (self.adf_weight, self.hurst_weight, self.half_life_weight, self.johansen_weight)
        require(
            all(w >= 0 for w in weights), "score weights must be non-negative", "weights", weights
        )
        require(
            self.max_results is None or self.max_results > 0,
            "max_results must be positive",
            "max_results",
            self.max_results,
        )


@dataclass(frozen=True)
class PairScanResult:
    """Scored candidate pair."""

    symbol_a: str
    symbol_b: str
    score: float
    correlation: float
    cointegration: CointegrationResult

    @property
    def pair(self) -> str:
        return f"{self.symbol_a}/{self.symbol_b}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pair": self.pair,
            "symbol_a": self.symbol_a,
            "symbol_b": self.symbol_b,
            "score": self.score,
            "correlation": self.correlation,
            **self.cointegration.to_dict(),
        }


class PairScanner:
    """
    Scan a universe for tradeable pairs.

    Example:
        scanner = PairScanner(ScannerConfig(min_correlation=0.7))
        for result in scanner.scan(price_frame):
            print(result.pair, result.score)
    """

    def __init__(self, config: Optional[ScannerConfig] = None):
        self.cfg = config or ScannerConfig()
        self._tracker = CorrelationTracker(
            CorrelationConfig(min_length=self.cfg.min_data_points)
        )
        self._last_scan = {"symbols": 0, "pairs_scanned": 0, "prefiltered": 0, "qualified": 0}

        logger.info(
            f"PairScanner initialized: min_corr={self.cfg.min_correlation}, "
            f"min_points={self.cfg.min_data_points}"
        )

    def score(self, result: CointegrationResult) -> float:
        """Composite quality score of one battery result."""
        cfg = self.cfg
        adf_strength = float(
            np.clip(-result.adf_statistic / (2 * abs(ADF_CRITICAL_VALUES["1%"])), 0.0, 1.0)
        )

        hurst_quality = 0.0
        if result.hurst_exponent is not None:
            hurst_quality = float(
                np.clip(
                    (HURST_TRENDING_THRESHOLD - result.hurst_exponent) / HURST_TRENDING_THRESHOLD,
                    0.0,
                    1.0,
                )
            )

        half_life_score = 0.0
        if result.half_life_bars is not None:
            distance = abs(result.half_life_bars - cfg.target_half_life) / cfg.target_half_life
            half_life_score = 1.0 / (1.0 + distance)

        johansen_bonus = 1.0 if result.johansen_rank >= 1 else 0.0

        return (
            cfg.adf_weight * adf_strength
            + cfg.hurst_weight * hurst_quality
            + cfg.half_life_weight * half_life_score
            + cfg.johansen_weight * johansen_bonus
        )

    def scan(
        self, prices: Union[pd.DataFrame, Mapping[str, Sequence[float]]]
    ) -> List[PairScanResult]:
        """
        Score every pair in a universe.

        DataFrame pairs are aligned on the index: a row missing either
        close is dropped for that pair only. Mapping series are aligned
        on their trailing common length.

        Args:
            prices: DataFrame with one close column per symbol, or a
                mapping of symbol -> closes

        Returns:
            Qualified pairs sorted by descending score
        """
        min_points = self.cfg.min_data_points
        if isinstance(prices, pd.DataFrame):
            frame = prices.rename(columns=str)
            symbol_count = len(frame.columns)
            usable = [name for name, count in frame.count().items() if count >= min_points]
        else:
            frame = None
            series = {str(name): extract_closes(values) for name, values in prices.items()}
            symbol_count = len(series)
            usable = [name for name, values in series.items() if len(values) >= min_points]

        n = len(usable)
        stats = {
            "symbols": symbol_count,
            "pairs_scanned": n * (n - 1) // 2,
            "prefiltered": 0,
            "qualified": 0,
        }

        results = []
        for symbol_a, symbol_b in combinations(usable, 2):
            if frame is not None:
                joint = frame[[symbol_a, symbol_b]].dropna()
                if len(joint) < min_points:
                    logger.debug(
                        f"{symbol_a}/{symbol_b}: {len(joint)} shared rows < {min_points}"
                    )
                    continue
                closes_a = joint[symbol_a].to_numpy(dtype=float)
                closes_b = joint[symbol_b].to_numpy(dtype=float)
            else:
                closes_a, closes_b = series[symbol_a], series[symbol_b]

            corr = self._tracker.correlation(closes_a, closes_b)
            if abs(corr) < self.cfg.min_correlation:
                continue
            stats["prefiltered"] += 1

            coint = evaluate_cointegration(
                closes_a,
                closes_b,
                lookback=self.cfg.hedge_ratio_lookback,
                min_data_points=self.cfg.min_data_points,
            )
            if not coint.is_stationary:
                continue

            results.append(
                PairScanResult(
                    symbol_a=symbol_a,
                    symbol_b=symbol_b,
                    score=round(self.score(coint), 4),
                    correlation=corr,
                    cointegration=coint,
                )
            )

        results.sort(key=lambda r: r.score, reverse=True)
        if self.cfg.max_results is not None:
            results = results[: self.cfg.max_results]

        stats["qualified"] = len(results)
        self._last_scan = stats
        logger.info(
            f"Pair scan: {stats['pairs_scanned']} pairs, {stats['prefiltered']} passed "
            f"correlation, {stats['qualified']} qualified"
        )
        return results

    def summary(self) -> Dict[str, int]:
        """Counts from the most recent scan."""
        return dict(self._last_scan)


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = ["ScannerConfig", "PairScanResult", "PairScanner"]
