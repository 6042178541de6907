"""Base types for the command framework.

Commands are plain CommandDefinition records holding an async
``execute(interaction, ctx)`` callable plus the declarative
CommandConfig that decides which middleware gates the call.

Key classes:
    CommandContext: Dependency container handed to every command.
    CommandDefinition: A named, configured command.
    CommandRegistry: Maps command names to definitions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterator, List, Optional

import structlog

from ..middleware.auto import auto_middleware
from ..middleware.command_config import CommandConfig
from ..middleware.pipeline import MiddlewareConfiguration

if TYPE_CHECKING:
    from ..config import Config
    from ..interactions.events import CommandInteraction
    from ..interactions.registry import HandlerRegistry
    from ..pagination.responder import PaginatedResponder

logger = structlog.get_logger("switchwire.bot")

CommandExecute = Callable[["CommandInteraction", "CommandContext"], Awaitable[None]]


@dataclass
class CommandContext:
    """Services available to a command while it runs.

    ``logger`` is bound with the command name, interaction id, guild id
    and masked user id for this invocation.
    """

    logger: Any
    registry: "HandlerRegistry"
    paginated_responder: "PaginatedResponder"
    config: "Config"
    commands: Optional["CommandRegistry"] = None


@dataclass
class CommandDefinition:
    """A command and its gating configuration.

    Attributes:
        name: Invocation name, matched case-insensitively.
        description: One-line summary shown by ``help``.
        execute: Async callable run at the end of the middleware chain.
        group: Optional category, recorded in the command log.
        config: Requirements enforced by the default middleware.
        middleware: Steps around the command. Built from ``config``
            with ``auto_middleware`` when not given.
    """

    name: str
    description: str
    execute: CommandExecute
    group: Optional[str] = None
    config: CommandConfig = field(default_factory=CommandConfig)
    middleware: Optional[MiddlewareConfiguration] = None

    def __post_init__(self):
        if self.middleware is None:
            self.middleware = auto_middleware(self.config)


def create_command(
    name: str,
    description: str,
    execute: CommandExecute,
    *,
    group: Optional[str] = None,
    config: Optional[CommandConfig] = None,
    middleware: Optional[MiddlewareConfiguration] = None,
) -> CommandDefinition:
    return CommandDefinition(
        name=name,
        description=description,
        execute=execute,
        group=group,
        config=config or CommandConfig(),
        middleware=middleware,
    )


class CommandRegistry:
    """Maps command names to CommandDefinitions.

    Registering a name twice replaces the earlier command and logs a
    warning.
    """

    def __init__(self):
        self._commands: Dict[str, CommandDefinition] = {}

    def register(self, command: CommandDefinition) -> None:
        key = command.name.lower()
        if key in self._commands:
            logger.warning(
                "command_handler_conflict",
                command=key,
                replaced_group=self._commands[key].group,
                group=command.group,
            )
        self._commands[key] = command

    def register_all(self, commands: List[CommandDefinition]) -> None:
        for command in commands:
            self.register(command)

    def get(self, name: str) -> Optional[CommandDefinition]:
        """Look up a command by name, ignoring case."""
        return self._commands.get(name.lower())

    @property
    def command_names(self) -> frozenset:
        return frozenset(self._commands)

    def __iter__(self) -> Iterator[CommandDefinition]:
        return iter(sorted(self._commands.values(), key=lambda c: c.name.lower()))

    def __len__(self) -> int:
        return len(self._commands)
