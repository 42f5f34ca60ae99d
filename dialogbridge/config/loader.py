"""Configuration loading utilities."""

import json
from pathlib import Path
from typing import Any

from dialogbridge.config.schema import BridgeConfig


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".dialogbridge" / "config.json"


def load_config(config_path: Path | None = None) -> BridgeConfig:
    """
    Load configuration from file or create default.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level value must be an object")
            return BridgeConfig.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValueError) as e:
            raise ValueError(
                f"Failed to load config from {path}: {e}. "
                "Fix the file or remove it to use defaults."
            ) from e

    return BridgeConfig()


def save_config(config: BridgeConfig, config_path: Path | None = None) -> Path:
    """Save configuration to file with camelCase keys."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = convert_to_camel(config.model_dump())
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return path


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
