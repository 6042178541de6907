"""Runs a command through its middleware chain."""

from typing import List, Optional

from ..command_log import CommandLog
from ..interactions.events import CommandInteraction
from ..middleware.builtin import AuditLogMiddleware
from ..middleware.pipeline import CommandMiddleware, MiddlewareContext, run_middleware_chain
from .base import CommandContext, CommandDefinition


def build_chain(
    command: CommandDefinition, command_log: Optional[CommandLog] = None
) -> List[CommandMiddleware]:
    """The full step list: ``before``, ``after``, then the audit log."""
    middleware = command.middleware
    steps: List[CommandMiddleware] = []
    if middleware is not None:
        steps.extend(middleware.before)
        steps.extend(middleware.after)
    if command_log is not None:
        steps.append(AuditLogMiddleware(command_log))
    return steps


async def execute_command(
    command: CommandDefinition,
    interaction: CommandInteraction,
    ctx: CommandContext,
    *,
    command_log: Optional[CommandLog] = None,
) -> None:
    """Execute ``command`` for ``interaction``.

    Exceptions not handled by a step (normally ErrorMiddleware)
    propagate to the caller.
    """
    context = MiddlewareContext(
        interaction=interaction,
        command=command,
        logger=ctx.logger,
        config=command.config,
    )

    async def final_handler() -> None:
        await command.execute(interaction, ctx)

    await run_middleware_chain(build_chain(command, command_log), context, final_handler)
