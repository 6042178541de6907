"""Standard pipeline steps: error capture, logging, guild gate,
cooldown gate and the command audit log.
"""

import time
from typing import Optional

from ..command_log import CommandLog, CommandLogEntry
from ..cooldowns import CommandCooldowns, get_command_cooldowns
from ..exceptions import CommandError, DoubleContinuationError
from ..interactions.models import MessagePayload
from ..messages import create_error_message
from .pipeline import CommandMiddleware, Continuation, MiddlewareContext

GENERIC_FAILURE = "Something went wrong while executing this command."


class ErrorMiddleware(CommandMiddleware):
    """Turns exceptions from the rest of the chain into an error reply.

    Place it first. DoubleContinuationError is a defect in a step and
    is re-raised after logging.
    """

    name = "error-handler"

    async def execute(self, context: MiddlewareContext, call_next: Continuation) -> None:
        try:
            await call_next()
        except DoubleContinuationError:
            context.logger.error("middleware_double_continuation", exc_info=True)
            raise
        except CommandError as e:
            context.logger.warning(
                "command_error",
                error=e.message,
                category=e.category.value,
                details=e.context,
            )
            await self._respond(
                context, create_error_message("Command Failed", e.message or GENERIC_FAILURE)
            )
        except Exception as e:
            context.logger.error(
                "command_failed",
                error=str(e) or type(e).__name__,
                exc_type=type(e).__name__,
                exc_info=True,
            )
            await self._respond(
                context,
                create_error_message(
                    "Command Failed",
                    str(e) or GENERIC_FAILURE,
                    hint="The incident has been logged.",
                ),
            )

    @staticmethod
    async def _respond(context: MiddlewareContext, message: MessagePayload) -> None:
        interaction = context.interaction
        if interaction.acknowledged:
            await interaction.edit_reply(message)
        else:
            await interaction.reply(message)


class LoggingMiddleware(CommandMiddleware):
    """Logs the start, end and duration of every command."""

    name = "logging"

    async def execute(self, context: MiddlewareContext, call_next: Continuation) -> None:
        started = time.monotonic()
        context.logger.info("command_started", options=sorted(context.interaction.options))
        try:
            await call_next()
        except Exception as e:
            context.logger.warning(
                "command_aborted",
                duration_ms=round((time.monotonic() - started) * 1000, 1),
                exc_type=type(e).__name__,
            )
            raise
        context.logger.info(
            "command_completed",
            duration_ms=round((time.monotonic() - started) * 1000, 1),
        )


class GuildMiddleware(CommandMiddleware):
    """Stops the chain for invocations outside a guild."""

    name = "guild-only"

    async def execute(self, context: MiddlewareContext, call_next: Continuation) -> None:
        if context.interaction.guild is not None:
            await call_next()
            return
        await context.interaction.reply(
            create_error_message("Guild Only", "This command can only be used in a server.")
        )


class CooldownMiddleware(CommandMiddleware):
    """Enforces ``CommandConfig.cooldown`` per actor and command.

    Args:
        cooldowns: Tracker to use. Defaults to the process-wide one.
    """

    name = "cooldown"

    def __init__(self, cooldowns: Optional[CommandCooldowns] = None):
        self._cooldowns = cooldowns

    @property
    def cooldowns(self) -> CommandCooldowns:
        return self._cooldowns or get_command_cooldowns()

    async def execute(self, context: MiddlewareContext, call_next: Continuation) -> None:
        duration = context.config.cooldown
        if not duration:
            await call_next()
            return

        state = self.cooldowns.check_and_set(
            context.interaction.actor_id, context.command.name, duration
        )
        if not state.allowed:
            await context.interaction.reply(
                create_error_message(
                    "⏱️ Command Cooldown",
                    state.user_message,
                    hint="This helps prevent command spam.",
                )
            )
            return
        await call_next()


class AuditLogMiddleware(CommandMiddleware):
    """Appends the invocation to the command log after the chain finishes.

    Write failures are logged and never affect the command's outcome.
    """

    name = "audit-log"

    def __init__(self, command_log: CommandLog):
        self.command_log = command_log

    async def execute(self, context: MiddlewareContext, call_next: Continuation) -> None:
        await call_next()

        interaction = context.interaction
        entry = CommandLogEntry(
            guild_id=interaction.guild_id,
            channel_id=interaction.channel_id,
            user_id=interaction.actor_id,
            command=context.command.name,
            group=context.command.group,
            options=interaction.options,
        )
        try:
            await self.command_log.append_async(entry)
        except Exception as e:
            context.logger.error(
                "command_log_write_failed",
                path=str(self.command_log.path),
                error=str(e),
            )
