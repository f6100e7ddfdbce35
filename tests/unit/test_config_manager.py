"""
Tests for the Configuration Manager
====================================

Tests YAML/JSON loading, environment overrides and section validation.
"""

import json

import pytest
import yaml

from shared.kestrel_core.config_manager import ConfigManager, KestrelConfig
from shared.kestrel_core.exceptions import MissingConfigError
from shared.kestrel_core.execution_model import SlippageModel


@pytest.fixture
def yaml_config(tmp_path):
    path = tmp_path / "kestrel.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "kelly": {"kelly_fraction": 0.5, "max_yolo_pct": 0.30},
                "sizer": {"max_position_pct": 0.15},
                "pairs": {"entry_z_score": 2.5},
                "kalman": {"delta": 0.001},
                "execution": {"slippage_bps": 7, "slippage_model": "volume"},
                "backtest": {"initial_balance": 50_000},
            }
        )
    )
    return path


class TestLoad:
    """Tests for file loading."""

    def test_defaults_without_file(self):
        manager = ConfigManager()
        assert isinstance(manager.config, KestrelConfig)
        assert manager.config.kelly.kelly_fraction == 0.33
        assert manager.validate() == []

    def test_load_yaml(self, yaml_config):
        manager = ConfigManager(yaml_config)
        cfg = manager.config
        assert cfg.kelly.kelly_fraction == 0.5
        assert cfg.sizer.max_position_pct == 0.15
        assert cfg.pairs.entry_z_score == 2.5
        assert cfg.execution.slippage_model == SlippageModel.VOLUME
        assert cfg.backtest.initial_balance == 50_000

    def test_load_json(self, tmp_path):
        path = tmp_path / "kestrel.json"
        path.write_text(json.dumps({"scanner": {"min_correlation": 0.7}}))
        manager = ConfigManager()
        assert manager.load(path) is True
        assert manager.config.scanner.min_correlation == 0.7

    def test_missing_file(self, tmp_path):
        assert ConfigManager().load(tmp_path / "absent.yaml") is False

    def test_missing_required_file(self, tmp_path):
        with pytest.raises(MissingConfigError) as exc_info:
            ConfigManager().load(tmp_path / "absent.yaml", required=True)
        assert exc_info.value.code == "CONFIG_NOT_FOUND"

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "kestrel.toml"
        path.write_text("[kelly]\n")
        assert ConfigManager().load(path) is False

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "kestrel.yaml"
        path.write_text("- 1\n- 2\n")
        assert ConfigManager().load(path) is False

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "kestrel.yaml"
        path.write_text("kelly: [unclosed\n")
        assert ConfigManager().load(path) is False

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "kestrel.yaml"
        path.write_text("")
        manager = ConfigManager()
        assert manager.load(path) is True
        assert manager.config.backtest.initial_balance == 100_000.0


class TestNestedSections:
    """Tests for sections built from other sections."""

    def test_sizer_receives_kelly(self, yaml_config):
        cfg = ConfigManager(yaml_config).config
        assert cfg.sizer.kelly is cfg.kelly
        assert cfg.sizer.tail_risk is cfg.tail_risk

    def test_pairs_receives_kalman(self, yaml_config):
        cfg = ConfigManager(yaml_config).config
        assert cfg.pairs.kalman is cfg.kalman
        assert cfg.pairs.kalman.delta == 0.001

    def test_ensemble_receives_sub_strategies(self, yaml_config):
        cfg = ConfigManager(yaml_config).config
        assert cfg.ensemble.momentum is cfg.momentum
        assert cfg.ensemble.mean_reversion is cfg.mean_reversion


class TestValidation:
    """Tests for section validation."""

    def test_invalid_section_falls_back(self, tmp_path):
        path = tmp_path / "kestrel.yaml"
        path.write_text(yaml.safe_dump({"pairs": {"entry_z_score": 5.0}}))
        manager = ConfigManager(path)
        assert manager.config.pairs.entry_z_score == 2.0
        errors = manager.validate()
        assert len(errors) == 1
        assert errors[0].startswith("pairs.entry_z_score")

    def test_non_mapping_section(self, tmp_path):
        path = tmp_path / "kestrel.yaml"
        path.write_text(yaml.safe_dump({"kalman": 3}))
        manager = ConfigManager(path)
        assert "kalman: section must be a mapping" in manager.validate()

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "kestrel.yaml"
        path.write_text(yaml.safe_dump({"backtest": {"initial_balance": 2_000, "colour": "red"}}))
        manager = ConfigManager(path)
        assert manager.config.backtest.initial_balance == 2_000
        assert manager.validate() == []

    def test_cross_section_checks(self, tmp_path):
        path = tmp_path / "kestrel.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "pairs_backtest": {"lookback": 30},
                    "tail_risk": {"max_var_pct": 0.05, "max_cvar_pct": 0.04},
                }
            )
        )
        errors = ConfigManager(path).validate()
        assert "pairs_backtest.lookback must cover pairs.min_data_points" in errors
        assert "tail_risk.max_cvar_pct should be >= tail_risk.max_var_pct" in errors


class TestEnvironmentOverrides:
    """Tests for KESTREL_<SECTION>__<KEY> overrides."""

    def test_override_parsed_as_int(self, yaml_config, monkeypatch):
        monkeypatch.setenv("KESTREL_BACKTEST__INITIAL_BALANCE", "5000")
        manager = ConfigManager(yaml_config)
        assert manager.config.backtest.initial_balance == 5000
        assert isinstance(manager.get("backtest.initial_balance"), int)

    def test_override_parsed_as_bool(self, yaml_config, monkeypatch):
        monkeypatch.setenv("KESTREL_PAIRS_BACKTEST__COINTEGRATION_GATE", "false")
        manager = ConfigManager(yaml_config)
        assert manager.config.pairs_backtest.cointegration_gate is False

    def test_override_creates_section(self, yaml_config, monkeypatch):
        monkeypatch.setenv("KESTREL_SCANNER__MIN_CORRELATION", "0.8")
        manager = ConfigManager(yaml_config)
        assert manager.config.scanner.min_correlation == 0.8

    def test_parse_value(self):
        manager = ConfigManager()
        assert manager._parse_value("TRUE") is True
        assert manager._parse_value("12") == 12
        assert manager._parse_value("0.5") == 0.5
        assert manager._parse_value("fixed") == "fixed"


class TestRuntimeAccess:
    """Tests for get / set / reload / get_info."""

    def test_get(self, yaml_config):
        manager = ConfigManager(yaml_config)
        assert manager.get("kelly.kelly_fraction") == 0.5
        assert manager.get("kelly.missing", "default") == "default"
        assert manager.get("nothing.here") is None

    def test_set_rebuilds_sections(self):
        manager = ConfigManager()
        manager.set("pairs.entry_z_score", 2.5)
        assert manager.config.pairs.entry_z_score == 2.5
        assert manager.get("pairs.entry_z_score") == 2.5

    def test_reload(self, yaml_config):
        manager = ConfigManager(yaml_config)
        yaml_config.write_text(yaml.safe_dump({"backtest": {"initial_balance": 7_500}}))
        assert manager.reload() is True
        assert manager.config.backtest.initial_balance == 7_500
        assert manager.config.kelly.kelly_fraction == 0.33

    def test_reload_without_file(self):
        assert ConfigManager().reload() is False

    def test_get_info(self, yaml_config):
        info = ConfigManager(yaml_config).get_info()
        assert info["path"] == str(yaml_config)
        assert info["loaded_at"] is not None
        assert "kelly" in info["sections"]
        assert info["validation_errors"] == []
