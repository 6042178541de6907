"""Command definitions, registry and execution."""

from .base import CommandContext, CommandDefinition, CommandRegistry, create_command
from .core import core_commands
from .executor import build_chain, execute_command

__all__ = [
    "CommandContext",
    "CommandDefinition",
    "CommandRegistry",
    "build_chain",
    "core_commands",
    "create_command",
    "execute_command",
]
