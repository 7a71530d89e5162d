"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from flowscan_app.config.defaults import get_default_config
from flowscan_app.config.loader import ConfigLoader, load_engine_config
from flowscan_app.config.validation import ConfigValidator
from flowscan_app.errors import ConfigurationError


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    (tmp_path / "engine.yaml").write_text(
        "risk:\n"
        "  max_consecutive_losses: 4\n"
        "option_selection:\n"
        "  assumed_volatility: 0.4\n"
    )
    (tmp_path / "tickers.yaml").write_text(
        "tickers:\n"
        "  TSLA:\n"
        "    option_selection:\n"
        "      assumed_volatility: 0.6\n"
    )
    return tmp_path


class TestDefaultConfig:
    """Test suite for default configuration."""

    def test_default_values(self) -> None:
        config = get_default_config()

        assert config.thresholds.high_conviction_threshold == 75
        assert config.thresholds.alert_threshold == 35
        assert config.thresholds.watchlist_threshold == 25
        assert config.paper_trading.position_notional == 2000.0
        assert config.risk.max_daily_loss_dollars == 500.0
        assert config.risk.max_consecutive_losses == 3
        assert config.recommendation.tier_thresholds["fire"] == 75

    def test_shipped_yaml_matches_defaults(self) -> None:
        """The repository config directory restates the built-in defaults."""
        config = load_engine_config()

        assert config.paper_trading == get_default_config().paper_trading
        assert config.risk == get_default_config().risk


class TestConfigLoader:
    """Test suite for configuration loader."""

    def test_engine_yaml_overrides_defaults(self, config_dir: Path) -> None:
        config = load_engine_config(config_dir)

        assert config.risk.max_consecutive_losses == 4
        assert config.risk.max_daily_loss_dollars == 500.0
        assert config.option_selection.assumed_volatility == 0.4

    def test_ticker_overrides(self, config_dir: Path) -> None:
        loader = ConfigLoader.create(config_dir)

        tsla = loader.merge_config("tsla")
        other = loader.merge_config("AAPL")

        assert tsla["option_selection"]["assumed_volatility"] == 0.6
        assert other["option_selection"]["assumed_volatility"] == 0.4

    def test_runtime_overrides_win(self, config_dir: Path) -> None:
        config = load_engine_config(config_dir, "TSLA", {"option_selection": {"assumed_volatility": 0.9}})

        assert config.option_selection.assumed_volatility == 0.9
        assert config.option_selection.contract_multiplier == 100

    def test_nested_merge_keeps_siblings(self, tmp_path: Path) -> None:
        config = load_engine_config(tmp_path, overrides={
            "paper_trading": {"leverage_multipliers": {"fire": 5.0}},
        })

        assert config.paper_trading.leverage_multipliers == {"fire": 5.0, "strong": 3.75, "default": 3.5}

    def test_missing_files_mean_defaults(self, tmp_path: Path) -> None:
        assert load_engine_config(tmp_path) == get_default_config()

    def test_invalid_value_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            load_engine_config(tmp_path, overrides={"risk": {"max_consecutive_losses": 0}})

        assert "risk.max_consecutive_losses" in str(exc_info.value)

    def test_unknown_option_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_engine_config(tmp_path, overrides={"risk": {"max_weekly_loss": 100}})

    def test_unknown_section_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_engine_config(tmp_path, overrides={"broker": {"name": "paper"}})

    def test_bad_yaml_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "engine.yaml").write_text("risk: [unclosed\n")

        with pytest.raises(ConfigurationError):
            load_engine_config(tmp_path)

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "engine.yaml").write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            load_engine_config(tmp_path)


class TestConfigValidator:
    """Test suite for configuration validation."""

    def test_threshold_order(self) -> None:
        errors = ConfigValidator.validate_thresholds({
            "high_conviction_threshold": 30,
            "alert_threshold": 35,
            "watchlist_threshold": 25,
        })

        assert len(errors) == 1
        assert errors[0].field == "thresholds"

    def test_threshold_range(self) -> None:
        errors = ConfigValidator.validate_thresholds({"alert_threshold": 140})
        assert errors[0].field == "thresholds.alert_threshold"

    def test_tier_thresholds_must_descend(self) -> None:
        errors = ConfigValidator.validate_recommendation({
            "tier_thresholds": {"fire": 50, "strong": 65, "good": 50, "lean": 35, "watch": 20},
        })
        assert len(errors) == 1

    def test_tier_tables_need_default(self) -> None:
        assert ConfigValidator.validate_targets({"tier_targets": {"fire": {}}})
        assert ConfigValidator.validate_option_selection({"tier_contracts": {"fire": [0.005, 1]}})
        assert ConfigValidator.validate_paper_trading({"leverage_multipliers": {"fire": 4.0}})

    def test_booleans_are_not_numbers(self) -> None:
        errors = ConfigValidator.validate_risk({"max_consecutive_losses": True})
        assert len(errors) == 1

    def test_defaults_are_valid(self) -> None:
        loader = ConfigLoader.create()
        merged = loader._dataclass_to_dict(get_default_config())

        assert ConfigValidator.validate_config(merged) == []
