"""
KESTREL CORE v1.0 - Centralized Exception Hierarchy
====================================================

Structured exception types for the quantitative core.

Statistical routines never raise for short, flat or degenerate input;
they return None, a zero result, or a result carrying a reason. The
exceptions below cover the two remaining cases:

    - ConfigurationError: a caller built an engine with invalid settings
    - StrategyError: a strategy was wired into an engine that cannot drive it
    - DataError: a bar could not be built from a malformed record

Author: KESTREL Core Development Team
Version: 1.0.0
"""

from typing import Any, Dict, Optional


class KestrelError(Exception):
    """
    Base exception for all KESTREL errors.

    Attributes:
        message: Human-readable error description
        code: Optional error code for programmatic handling
        details: Optional dict with additional context
        recoverable: Whether the caller can fix the input and retry
    """

    recoverable: bool = True

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(KestrelError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Invalid configuration value."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        value: Any = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.field_name = field_name
        self.value = value


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""

    pass


# =============================================================================
# DATA ERRORS
# =============================================================================


class DataError(KestrelError):
    """Base exception for data-related errors."""

    pass


class DataValidationError(DataError):
    """Record cannot be turned into a valid model object."""

    pass


# =============================================================================
# STRATEGY ERRORS
# =============================================================================


class StrategyError(KestrelError):
    """Base exception for strategy-related errors."""

    pass


class CapabilityError(StrategyError):
    """Strategy does not implement the capability an engine requires."""

    recoverable: bool = False


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def require(condition: bool, message: str, field_name: str, value: Any) -> None:
    """Raise InvalidConfigError unless condition holds."""
    if not condition:
        raise InvalidConfigError(
            message, field_name=field_name, value=value, code="INVALID_CONFIG"
        )


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    # Base
    "KestrelError",
    # Configuration
    "ConfigurationError",
    "InvalidConfigError",
    "MissingConfigError",
    # Data
    "DataError",
    "DataValidationError",
    # Strategy
    "StrategyError",
    "CapabilityError",
    # Helpers
    "require",
]
