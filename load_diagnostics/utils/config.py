# load_diagnostics/utils/config.py - Configuration management
"""
Configuration management for load diagnostics.
Loads and validates configuration from YAML files and turns the analysis
section into an immutable RuleSet handed to every analyzer.
"""

import copy
import yaml
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Dict, Any, Optional, Tuple
import logging

from load_diagnostics.exceptions import ConfigurationError


@dataclass(frozen=True)
class RuleSet:
    """
    Thresholds used by the analyzers.

    Passed explicitly into each analyzer.
    """
    slow_outlier_factor: float = 3.0
    write_bottleneck_percent: float = 70.0
    publish_bottleneck_percent: float = 50.0
    balanced_write_range: Tuple[float, float] = (30.0, 70.0)
    balanced_publish_range: Tuple[float, float] = (20.0, 50.0)
    reliability_concern_below: float = 95.0
    irregular_score_below: float = 40.0
    high_system_load_per_hour: float = 1000.0
    top_active_tables: int = 3
    insight_table_limit: int = 5
    report_max_insights: int = 3
    long_running_threshold_seconds: float = 3600.0
    window_days: int = 7

    def __post_init__(self):
        if self.slow_outlier_factor <= 0:
            raise ConfigurationError(
                f"slow_outlier_factor must be positive, got {self.slow_outlier_factor}"
            )
        for name in ('balanced_write_range', 'balanced_publish_range'):
            low, high = getattr(self, name)
            if low >= high:
                raise ConfigurationError(f"{name} must be an increasing pair, got ({low}, {high})")
        if self.report_max_insights < 0 or self.top_active_tables < 0:
            raise ConfigurationError("Insight limits must not be negative")

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]]) -> 'RuleSet':
        """
        Build a RuleSet from a mapping, ignoring unknown keys.

        Args:
            values: Mapping of threshold names to values

        Returns:
            RuleSet instance
        """
        values = values or {}
        known = {f.name for f in fields(cls)}
        kwargs = {}

        for key, value in values.items():
            if key not in known:
                continue
            if key.startswith('balanced_'):
                if not isinstance(value, (list, tuple)) or len(value) != 2:
                    raise ConfigurationError(f"{key} must be a [low, high] pair")
                value = (float(value[0]), float(value[1]))
            kwargs[key] = value

        return cls(**kwargs)

    @classmethod
    def from_config(cls, config: 'Config') -> 'RuleSet':
        """
        Build a RuleSet from the 'analysis' section of a Config.

        Args:
            config: Loaded configuration

        Returns:
            RuleSet instance
        """
        return cls.from_dict(config.get('analysis', {}))

    def to_dict(self) -> Dict[str, Any]:
        """Get the rule set as a plain dictionary."""
        data = asdict(self)
        data['balanced_write_range'] = list(self.balanced_write_range)
        data['balanced_publish_range'] = list(self.balanced_publish_range)
        return data


DEFAULT_RULES = RuleSet()


class Config:
    """
    Configuration manager for load diagnostics.

    Loads configuration from YAML files and provides access to settings.
    """

    DEFAULT_CONFIG = {
        'source': {
            'history_table': '_statistics_.loads_history',
            'fallback_table': 'information_schema.loads',
            'placeholder': '%s',
        },
        'output': {
            'format': 'text',
            'output_dir': 'reports',
            'prometheus_port': 9090,
        },
        'analysis': DEFAULT_RULES.to_dict(),
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML configuration file
        """
        self.logger = logging.getLogger(__name__)
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            self.load_from_file(config_file)

    def load_from_file(self, config_file: str):
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML file
        """
        config_path = Path(config_file)

        if not config_path.exists():
            self.logger.warning(f"Config file not found: {config_file}, using defaults")
            return

        try:
            with open(config_path, 'r') as f:
                loaded_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            self.logger.error(f"Failed to load config: {e}")
            raise ConfigurationError(f"Failed to load config {config_file}: {e}") from e

        if not isinstance(loaded_config, dict):
            raise ConfigurationError(f"Config file {config_file} must contain a mapping")

        self._merge_config(self.config, loaded_config)
        self.logger.info(f"Loaded configuration from {config_file}")

    def _merge_config(self, base: Dict, override: Dict):
        """
        Recursively merge configuration dictionaries.

        Args:
            base: Base configuration dictionary
            override: Override configuration dictionary
        """
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'analysis.slow_outlier_factor')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """
        Set configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'output.format')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def rules(self) -> RuleSet:
        """Build the RuleSet for the current analysis section."""
        return RuleSet.from_config(self)

    def to_dict(self) -> Dict:
        """
        Get full configuration as dictionary.

        Returns:
            Configuration dictionary
        """
        return copy.deepcopy(self.config)

    def save_to_file(self, config_file: str):
        """
        Save current configuration to YAML file.

        Args:
            config_file: Path to output YAML file
        """
        config_path = Path(config_file)

        try:
            with open(config_path, 'w') as f:
                yaml.safe_dump(self.config, f, default_flow_style=False)
        except OSError as e:
            self.logger.error(f"Failed to save config: {e}")
            raise

        self.logger.info(f"Saved configuration to {config_file}")
