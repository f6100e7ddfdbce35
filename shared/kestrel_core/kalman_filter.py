"""
KESTREL CORE v1.0 - Kalman Hedge-Ratio Filter
==============================================

Scalar Kalman filter treating the hedge ratio beta as a random walk.

State-space formulation:
    State equation:       beta_t = beta_{t-1} + w_t,   w_t ~ N(0, delta)
    Observation equation: y_t = beta_t * x_t + v_t,    v_t ~ N(0, ve)

No intercept term is estimated.

Recursion per observation pair (y, x):
    Predict: P_pred = P + delta
    Update:  innovation = y - beta * x
             S = x^2 * P_pred + ve
             K = x * P_pred / S
             beta = beta + K * innovation
             P = (1 - K * x) * P_pred

KalmanState is the only mutable state; reset() restores
(beta=0, P=initial_covariance) so replays are deterministic.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence

import numpy as np

from .exceptions import require

logger = logging.getLogger("KESTREL_KalmanFilter")


@dataclass
class KalmanConfig:
    """Configuration for the hedge-ratio filter."""

    delta: float = 1e-4  # Process noise
    observation_noise: float = 1e-3  # ve
    initial_covariance: float = 1.0  # P after reset

    def __post_init__(self):
        require(self.delta >= 0, "delta must be non-negative", "delta", self.delta)
        require(
            self.observation_noise > 0,
            "observation_noise must be positive",
            "observation_noise",
            self.observation_noise,
        )
        require(
            self.initial_covariance > 0,
            "initial_covariance must be positive",
            "initial_covariance",
            self.initial_covariance,
        )


@dataclass
class KalmanState:
    """Filter state: hedge ratio estimate and its variance."""

    beta: float = 0.0
    covariance_p: float = 1.0
    n_updates: int = 0


@dataclass(frozen=True)
class KalmanFilterResult:
    """Replay of a full series pair."""

    betas: np.ndarray
    innovations: np.ndarray
    final_beta: float


class KalmanHedgeRatio:
    """
    Kalman filter for time-varying hedge ratio estimation.

    Example:
        kf = KalmanHedgeRatio()
        result = kf.filter(prices_a, prices_b)
        print(f"beta={result.final_beta:.3f}")

        # Streaming use
        kf.reset()
        for y, x in zip(prices_a, prices_b):
            innovation = kf.update(y, x)
    """

    def __init__(self, config: Optional[KalmanConfig] = None):
        self.cfg = config or KalmanConfig()
        self._state = KalmanState(covariance_p=self.cfg.initial_covariance)

        logger.debug(
            f"KalmanHedgeRatio initialized: delta={self.cfg.delta}, "
            f"ve={self.cfg.observation_noise}"
        )

    @property
    def state(self) -> KalmanState:
        """Copy of the current state."""
        return replace(self._state)

    @property
    def beta(self) -> float:
        return self._state.beta

    def reset(self) -> None:
        """Return to beta=0, P=initial_covariance."""
        self._state = KalmanState(covariance_p=self.cfg.initial_covariance)

    def update(self, y: float, x: float) -> float:
        """
        Apply one predict/update step.

        Args:
            y: Dependent price (asset A)
            x: Regressor price (asset B)

        Returns:
            Innovation (y - beta_prior * x)
        """
        state = self._state
        p_pred = state.covariance_p + self.cfg.delta

        innovation = y - state.beta * x
        s = x * x * p_pred + self.cfg.observation_noise
        gain = x * p_pred / s

        state.beta = state.beta + gain * innovation
        state.covariance_p = (1.0 - gain * x) * p_pred
        state.n_updates += 1

        return float(innovation)

    def filter(
        self, series_a: Sequence[float], series_b: Sequence[float], reset: bool = True
    ) -> Optional[KalmanFilterResult]:
        """
        Replay a series pair through the filter.

        Series are aligned on their trailing common length.

        Args:
            series_a: Dependent prices
            series_b: Regressor prices
            reset: Start from a fresh state (default True)

        Returns:
            KalmanFilterResult, or None if either series is empty
        """
        a = np.asarray(series_a, dtype=float).ravel()
        b = np.asarray(series_b, dtype=float).ravel()
        n = min(len(a), len(b))
        if n == 0:
            return None
        a, b = a[-n:], b[-n:]

        if reset:
            self.reset()

        betas = np.empty(n)
        innovations = np.empty(n)
        for t in range(n):
            innovations[t] = self.update(a[t], b[t])
            betas[t] = self._state.beta

        return KalmanFilterResult(
            betas=betas, innovations=innovations, final_beta=float(betas[-1])
        )


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "KalmanConfig",
    "KalmanState",
    "KalmanFilterResult",
    "KalmanHedgeRatio",
]
