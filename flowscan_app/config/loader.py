"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import DefaultConfig, EngineConfig, get_default_config
from .validation import ConfigValidator


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_engine_overrides(self) -> dict[str, Any]:
        """Load global overrides from engine.yaml."""
        return self._load_yaml("engine.yaml")

    def load_ticker_config(self, ticker: str) -> dict[str, Any]:
        """Load ticker-specific configuration overrides."""
        tickers_config = self._load_yaml("tickers.yaml")
        return tickers_config.get("tickers", {}).get(ticker.upper(), {}) or {}  # type: ignore[no-any-return]

    def merge_config(
        self,
        ticker: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Runtime overrides (highest priority)
        2. Ticker overrides from tickers.yaml, then engine.yaml
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_engine_overrides())

        if ticker:
            config = self._deep_merge(config, self.load_ticker_config(ticker))

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def build(self, config: dict[str, Any]) -> EngineConfig:
        """Validate a merged dictionary and build the typed configuration."""
        errors = ConfigValidator.validate_config(config)
        if errors:
            messages = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            raise ConfigurationError(
                "Configuration validation failed: " + "; ".join(messages),
                errors=errors
            )

        known_sections = {f.name for f in fields(DefaultConfig)}
        unknown_sections = set(config) - known_sections
        if unknown_sections:
            raise ConfigurationError(f"Unknown configuration sections: {sorted(unknown_sections)}")

        sections = {}
        for section in fields(DefaultConfig):
            section_cls = type(getattr(self.defaults, section.name))
            values = config.get(section.name) or {}
            known = {f.name for f in fields(section_cls)}
            unknown = set(values) - known
            if unknown:
                raise ConfigurationError(
                    f"Unknown options in section '{section.name}': {sorted(unknown)}"
                )
            sections[section.name] = section_cls(**values)

        return DefaultConfig(**sections)

    def _load_yaml(self, filename: str) -> dict[str, Any]:
        path = self.config_dir / filename

        if not path.exists():
            return {}

        try:
            with open(path) as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {path}")
        return loaded

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                elif isinstance(value, dict):
                    result[field_name] = dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def load_engine_config(
    config_dir: Optional[Path] = None,
    ticker: Optional[str] = None,
    overrides: Optional[dict[str, Any]] = None
) -> EngineConfig:
    """
    Load, merge and validate the engine configuration.

    Raises:
        ConfigurationError: if any option fails validation. This is the only
            fatal error path and is meant to abort before the evaluation loop
            starts.
    """
    loader = ConfigLoader.create(config_dir)
    return loader.build(loader.merge_config(ticker, overrides))
