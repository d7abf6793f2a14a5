"""Deployment configuration"""

from .deployment import ConfigError, DeploymentConfig
from .manager import DEFAULT_CONFIG_PATH, ConfigManager

__all__ = ["ConfigError", "ConfigManager", "DeploymentConfig", "DEFAULT_CONFIG_PATH"]
