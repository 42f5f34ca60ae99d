"""Configuration schema using Pydantic.

One data model with defaults for a bridge instance; values may come from a JSON file
(camelCase keys) or from DIALOGBRIDGE_* environment variables.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings


class LoggingConfig(BaseModel):
    """Loguru sink configuration."""
    level: str = "INFO"
    file: str | None = None  # Rotating log file path (optional)

    @field_validator("level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


class BridgeConfig(BaseSettings):
    """Root configuration for a bridge endpoint."""
    namespace: str = "Bridge"  # Prefix of reserved and internal handler names
    transport: Literal["immediate", "queued"] = "immediate"
    codec: Literal["json", "fallback"] = "json"
    ensure_ascii: bool = False  # Escape non-ASCII characters when encoding
    acknowledge_inbound: bool = False  # Send {namespace}.requestHandler.ack after each inbound message
    handler_name_range: int = Field(default=10000, gt=0)  # Random suffix range for one-shot handler names
    handler_name_attempts: int = Field(default=1000, gt=0)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("namespace")
    @classmethod
    def _valid_namespace(cls, value: str) -> str:
        value = value.strip()
        if not value or not value.replace("_", "").isalnum():
            raise ValueError("namespace must be a non-empty identifier")
        return value

    model_config = ConfigDict(
        env_prefix="DIALOGBRIDGE_",
        env_nested_delimiter="__",
    )
