"""Configuration module for dialogbridge."""

from dialogbridge.config.loader import get_config_path, load_config, save_config
from dialogbridge.config.schema import BridgeConfig, LoggingConfig

__all__ = ["BridgeConfig", "LoggingConfig", "get_config_path", "load_config", "save_config"]
