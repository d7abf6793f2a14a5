"""Configuration management for ethnode"""

import os
from pathlib import Path
from typing import Any, Dict

import yaml

from ethnode.config.deployment import ConfigError, DeploymentConfig

DEFAULT_CONFIG_PATH = Path.home() / ".ethnode" / "config.yaml"


class ConfigManager:
    """Manage ethnode deployment configuration"""

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path)

    def load(self) -> DeploymentConfig:
        """Load configuration from defaults, file and environment"""
        return DeploymentConfig.from_dict(self.load_raw())

    def load_raw(self) -> Dict[str, Any]:
        config = self._load_defaults()

        # Load from file if exists
        if self.config_path.exists():
            with open(self.config_path) as f:
                try:
                    file_config = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"Cannot parse {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigError(f"{self.config_path} must contain a mapping at the top level")
            config = self._merge(config, file_config)

        # Override with environment variables
        config = self._apply_env_overrides(config)

        return config

    def save(self, config: DeploymentConfig) -> None:
        """Save configuration to file"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, "w") as f:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

    def _load_defaults(self) -> Dict[str, Any]:
        return DeploymentConfig().to_dict()

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge two configuration dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides"""
        if root_dir := os.getenv("ETHNODE_ROOT_DIR"):
            config["root_dir"] = root_dir

        if network := os.getenv("ETHNODE_NETWORK"):
            config["network"] = network

        return config
