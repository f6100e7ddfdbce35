"""
KESTREL CORE v1.0 - Configuration Manager
==========================================

Loads engine configurations from a YAML or JSON file.

Features:
- YAML/JSON configuration loading
- Environment variable overrides (KESTREL_<SECTION>__<KEY>=value)
- Configuration validation without raising

File layout (every section optional):

    kelly:          {kelly_fraction: 0.33, max_yolo_pct: 0.25}
    tail_risk:      {confidence: 0.95, max_cvar_pct: 0.03}
    sizer:          {max_position_pct: 0.10}
    pairs:          {entry_z_score: 2.0, stop_z_score: 3.5}
    kalman:         {delta: 0.0001}
    scanner:        {min_correlation: 0.5}
    execution:      {slippage_bps: 5, slippage_model: volume}
    backtest:       {initial_balance: 100000}
    pairs_backtest: {cointegration_gate: true}
    momentum / mean_reversion / technical / ensemble

The sizer section picks up the kelly and tail_risk sections, the pairs
section the kalman section and the ensemble section the momentum and
mean_reversion sections.

Author: KESTREL Core Development Team
Version: 1.0.0
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .backtest_engine import BacktestConfig, PairsBacktestConfig
from .cvar_engine import CVaRConfig
from .exceptions import InvalidConfigError, MissingConfigError
from .execution_model import ExecutionConfig
from .kalman_filter import KalmanConfig
from .kelly_criterion import KellyConfig
from .pair_scanner import ScannerConfig
from .pairs_strategy import PairsStrategyConfig
from .position_sizer import PositionSizerConfig
from .strategies import EnsembleConfig, MeanReversionConfig, MomentumConfig, TechnicalConfig

logger = logging.getLogger("KESTREL_ConfigManager")


@dataclass
class KestrelConfig:
    """Complete configuration, one section per engine."""

    kelly: KellyConfig = field(default_factory=KellyConfig)
    tail_risk: CVaRConfig = field(default_factory=CVaRConfig)
    sizer: PositionSizerConfig = field(default_factory=PositionSizerConfig)
    pairs: PairsStrategyConfig = field(default_factory=PairsStrategyConfig)
    kalman: KalmanConfig = field(default_factory=KalmanConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    pairs_backtest: PairsBacktestConfig = field(default_factory=PairsBacktestConfig)
    momentum: MomentumConfig = field(default_factory=MomentumConfig)
    mean_reversion: MeanReversionConfig = field(default_factory=MeanReversionConfig)
    technical: TechnicalConfig = field(default_factory=TechnicalConfig)
    ensemble: EnsembleConfig = field(default_factory=EnsembleConfig)


# Sections built from plain scalar keys
_SECTIONS = {
    "kelly": KellyConfig,
    "tail_risk": CVaRConfig,
    "kalman": KalmanConfig,
    "scanner": ScannerConfig,
    "execution": ExecutionConfig,
    "backtest": BacktestConfig,
    "pairs_backtest": PairsBacktestConfig,
    "momentum": MomentumConfig,
    "mean_reversion": MeanReversionConfig,
    "technical": TechnicalConfig,
}


class ConfigManager:
    """
    Configuration manager for the KESTREL core.

    Example:
        config_manager = ConfigManager()
        config_manager.load("config/backtest.yaml")

        backtester = PairsBacktester(
            config=config_manager.config.pairs_backtest,
            execution_model=ExecutionModel(config_manager.config.execution),
        )
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self._config_path: Optional[Path] = None
        self._config = KestrelConfig()
        self._raw_config: Dict[str, Any] = {}
        self._errors: List[str] = []
        self._loaded_at: Optional[datetime] = None
        self._env_prefix = "KESTREL_"

        if config_path:
            self.load(config_path)

        logger.info("ConfigManager initialized")

    def load(self, path: Union[str, Path], required: bool = False) -> bool:
        """
        Load configuration from file.

        Args:
            path: Path to config file (YAML or JSON)
            required: Raise instead of returning False when the file is missing

        Returns:
            True if loaded successfully

        Raises:
            MissingConfigError: If required and the file does not exist
        """
        path = Path(path)

        if not path.exists():
            if required:
                raise MissingConfigError(
                    f"Config file not found: {path}", code="CONFIG_NOT_FOUND"
                )
            logger.warning(f"Config file not found: {path}")
            return False

        try:
            with open(path, "r") as f:
                if path.suffix in [".yaml", ".yml"]:
                    raw = yaml.safe_load(f) or {}
                elif path.suffix == ".json":
                    raw = json.load(f)
                else:
                    logger.error(f"Unsupported config format: {path.suffix}")
                    return False
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load config: {e}")
            return False

        if not isinstance(raw, dict):
            logger.error(f"Config root must be a mapping: {path}")
            return False

        self._raw_config = raw

        # Apply environment overrides
        self._apply_env_overrides()

        # Parse into structured config
        self._parse_config()

        self._config_path = path
        self._loaded_at = datetime.now(timezone.utc)
        logger.info(f"Configuration loaded from: {path}")
        return True

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        for key, value in os.environ.items():
            if key.startswith(self._env_prefix):
                config_key = key[len(self._env_prefix):].lower().replace("__", ".")
                self._set_nested(config_key, self._parse_value(value))

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        # Try boolean
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        # Try integer
        try:
            return int(value)
        except ValueError:
            pass

        # Try float
        try:
            return float(value)
        except ValueError:
            pass

        return value

    def _set_nested(self, key: str, value: Any) -> None:
        """Set a nested config value using dot notation."""
        parts = key.split(".")
        current = self._raw_config

        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = value

    def _build(self, name: str, cls: type, **nested: Any) -> Any:
        """Build one section, keeping the default when its values are invalid."""
        section = self._raw_config.get(name) or {}
        if not isinstance(section, dict):
            self._errors.append(f"{name}: section must be a mapping")
            return cls(**nested)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(section) - known)
        if unknown:
            logger.warning(f"Ignoring unknown keys in '{name}': {unknown}")

        values = {key: value for key, value in section.items() if key in known}
        values.update(nested)
        try:
            return cls(**values)
        except InvalidConfigError as e:
            self._errors.append(f"{name}.{e.field_name}: {e.message}")
            logger.warning(f"Invalid '{name}' section, using defaults: {e}")
            return cls(**nested)

    def _parse_config(self) -> None:
        """Parse raw config into structured config."""
        self._errors = []
        built = {name: self._build(name, cls) for name, cls in _SECTIONS.items()}

        built["sizer"] = self._build(
            "sizer", PositionSizerConfig, kelly=built["kelly"], tail_risk=built["tail_risk"]
        )
        built["pairs"] = self._build("pairs", PairsStrategyConfig, kalman=built["kalman"])
        built["ensemble"] = self._build(
            "ensemble",
            EnsembleConfig,
            momentum=built["momentum"],
            mean_reversion=built["mean_reversion"],
        )

        self._config = KestrelConfig(**built)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Dot-notation key (e.g., "backtest.initial_balance")
            default: Default value if not found

        Returns:
            Raw configuration value
        """
        parts = key.split(".")
        current = self._raw_config

        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value (runtime only)."""
        self._set_nested(key, value)
        self._parse_config()

    @property
    def config(self) -> KestrelConfig:
        """Get the structured configuration."""
        return self._config

    def reload(self) -> bool:
        """Reload configuration from file."""
        if self._config_path:
            return self.load(self._config_path)
        return False

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = list(self._errors)
        cfg = self._config

        if cfg.sizer.max_position_pct > cfg.kelly.max_yolo_pct:
            errors.append("sizer.max_position_pct should not exceed kelly.max_yolo_pct")

        if cfg.pairs_backtest.lookback < cfg.pairs.min_data_points:
            errors.append("pairs_backtest.lookback must cover pairs.min_data_points")

        if cfg.tail_risk.max_cvar_pct < cfg.tail_risk.max_var_pct:
            errors.append("tail_risk.max_cvar_pct should be >= tail_risk.max_var_pct")

        return errors

    def get_info(self) -> Dict[str, Any]:
        """Get configuration info."""
        return {
            "path": str(self._config_path) if self._config_path else None,
            "loaded_at": self._loaded_at.isoformat() if self._loaded_at else None,
            "sections": sorted(self._raw_config),
            "validation_errors": self.validate(),
        }


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = ["KestrelConfig", "ConfigManager"]
