"""
KESTREL CORE v1.0 - Correlation Tracker
========================================

Pairwise Pearson correlation across a set of series, used for:
    - the diversification discount in portfolio Kelly
    - the cheap level-correlation pre-filter of the pair scanner

Each pair is correlated on its own trailing common length, so series
of different lengths can be compared.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
import math
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .exceptions import require
from .statistics import pearson_correlation

logger = logging.getLogger("KESTREL_CorrelationTracker")


@dataclass
class CorrelationConfig:
    """Configuration for correlation tracking."""

    min_length: int = 5  # Shorter overlaps correlate as 0
    high_correlation_threshold: float = 0.7

    def __post_init__(self):
        require(self.min_length >= 2, "min_length must be >= 2", "min_length", self.min_length)


class CorrelationTracker:
    """
    Correlation matrix and diversification measures.

    Example:
        tracker = CorrelationTracker()
        matrix = tracker.correlation_matrix({"BTC": btc_ret, "ETH": eth_ret})
        factor = tracker.diversification_factor(matrix, "BTC")
    """

    def __init__(self, config: Optional[CorrelationConfig] = None):
        self.config = config or CorrelationConfig()
        logger.debug(f"CorrelationTracker initialized: min_length={self.config.min_length}")

    def correlation(self, x: Sequence[float], y: Sequence[float]) -> float:
        return pearson_correlation(x, y, min_length=self.config.min_length)

    def pairwise(
        self, series: Mapping[str, Sequence[float]]
    ) -> Iterator[Tuple[str, str, float]]:
        """Yield (name_a, name_b, correlation) for every unordered pair."""
        for name_a, name_b in combinations(list(series), 2):
            yield name_a, name_b, self.correlation(series[name_a], series[name_b])

    def correlation_matrix(self, series: Mapping[str, Sequence[float]]) -> pd.DataFrame:
        """Symmetric correlation matrix with a unit diagonal."""
        names = list(series)
        matrix = pd.DataFrame(np.eye(len(names)), index=names, columns=names)
        for name_a, name_b, corr in self.pairwise(series):
            matrix.loc[name_a, name_b] = corr
            matrix.loc[name_b, name_a] = corr
        return matrix

    @staticmethod
    def average_abs_correlation(matrix: pd.DataFrame, name: str) -> float:
        """Mean absolute correlation of one series against all others."""
        others = [col for col in matrix.columns if col != name]
        if not others:
            return 0.0
        return float(matrix.loc[name, others].abs().mean())

    def diversification_factor(self, matrix: pd.DataFrame, name: str) -> float:
        """
        1 / sqrt(1 + (N - 1) * avg_abs_correlation).

        Always in (0, 1]; uncorrelated series keep their full size.
        """
        n = len(matrix.columns)
        if n <= 1:
            return 1.0
        avg_corr = self.average_abs_correlation(matrix, name)
        return 1.0 / math.sqrt(1.0 + (n - 1) * avg_corr)

    def highly_correlated(self, matrix: pd.DataFrame) -> Dict[Tuple[str, str], float]:
        """Pairs whose absolute correlation reaches the configured threshold."""
        result = {}
        for name_a, name_b in combinations(list(matrix.columns), 2):
            corr = float(matrix.loc[name_a, name_b])
            if abs(corr) >= self.config.high_correlation_threshold:
                result[(name_a, name_b)] = corr
        return result


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = ["CorrelationConfig", "CorrelationTracker"]
