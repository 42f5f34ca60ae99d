"""Grouped CLI command modules."""

from .config_commands import register_config_commands
from .demo_command import register_demo_command

__all__ = ["register_config_commands", "register_demo_command"]
