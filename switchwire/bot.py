"""InteractionBot: wires the registry, paginator and command framework.

Key classes:
    InteractionBot: Owns the HandlerRegistry, PaginatedResponder,
        CommandRegistry and CommandLog, and routes inbound command
        interactions and action events to them.

Platform adapters (see server.py for the HTTP one) construct
CommandInteraction / ActionEvent subclasses and hand them to
``handle_command`` and ``handle_action``.
"""

from typing import Iterable, Optional

import structlog

from .command_log import CommandLog
from .commands import (
    CommandContext,
    CommandDefinition,
    CommandRegistry,
    core_commands,
    execute_command,
)
from .config import Config, get_config
from .interactions.events import ActionEvent, CommandInteraction
from .interactions.registry import HandlerRegistry
from .messages import create_error_message
from .pagination.responder import PaginatedResponder

logger = structlog.get_logger("switchwire.bot")

UNAVAILABLE_MESSAGE = "This interaction is no longer available."


class InteractionBot:
    """Routes interactions through the command and action subsystems.

    Subsystems are created in __init__; ``start()`` arms the background
    expiry sweep and must run inside the event loop.

    Args:
        config: Settings. Defaults to the process-wide Config.
        commands: Extra commands registered after the core ones.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        commands: Optional[Iterable[CommandDefinition]] = None,
    ):
        self.config = config or get_config()
        self.registry = HandlerRegistry(default_expiry=self.config.default_expiry)
        self.paginated_responder = PaginatedResponder(
            self.registry,
            timeout=self.config.pagination_timeout,
            idle_timeout=self.config.pagination_idle_timeout,
        )
        self.commands = CommandRegistry()
        self.commands.register_all(core_commands())
        if commands:
            self.commands.register_all(list(commands))
        self.command_log = CommandLog(self.config.command_log_path)
        self.running = False

    async def start(self):
        if self.running:
            return
        self.running = True
        self.registry.start_sweeper(self.config.sweep_interval)
        logger.info(
            "bot_started",
            commands=len(self.commands),
            sweep_interval=self.config.sweep_interval,
        )

    async def stop(self):
        """Dispose live paginators and stop the sweep. Idempotent."""
        if not self.running:
            return
        self.running = False
        self.paginated_responder.dispose_all()
        self.registry.stop_sweeper()
        logger.info("bot_stopped", registrations_left=len(self.registry))

    async def handle_action(self, event: ActionEvent) -> bool:
        """Dispatch a component click. Returns whether a handler owned it."""
        handled = await self.registry.dispatch(event)
        if handled:
            return True

        logger.info(
            "unhandled_action",
            action_id=event.action_id,
            actor="..." + event.actor_id[-4:],
        )
        if not event.acknowledged:
            try:
                await event.reply(
                    create_error_message("Interaction Unavailable", UNAVAILABLE_MESSAGE)
                )
            except Exception as e:
                logger.warning("unhandled_action_reply_failed", error=str(e))
        return False

    async def handle_command(self, interaction: CommandInteraction) -> bool:
        """Run the named command. Returns False for unknown commands."""
        command = self.commands.get(interaction.command_name)
        if command is None:
            logger.info("unknown_command", command=interaction.command_name)
            await interaction.reply(
                create_error_message(
                    "Unknown Command",
                    f"Unknown command: /{interaction.command_name}",
                    hint="Use /help to see available commands.",
                )
            )
            return False

        bound = logger.bind(
            command=command.name,
            interaction_id=interaction.id,
            guild_id=interaction.guild_id,
            user="..." + interaction.actor_id[-4:],
        )
        ctx = CommandContext(
            logger=bound,
            registry=self.registry,
            paginated_responder=self.paginated_responder,
            config=self.config,
            commands=self.commands,
        )
        await execute_command(command, interaction, ctx, command_log=self.command_log)
        return True
