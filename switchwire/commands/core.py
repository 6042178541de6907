"""Built-in commands: ping and help."""

import time
from typing import List

from ..interactions.events import CommandInteraction
from ..interactions.models import MessagePayload, Page
from ..messages import create_info_message
from .base import CommandContext, CommandDefinition, create_command


async def handle_ping(interaction: CommandInteraction, ctx: CommandContext) -> None:
    started = time.monotonic()
    await interaction.reply(MessagePayload(content="Pong!"))
    ctx.logger.debug("ping_replied", reply_ms=round((time.monotonic() - started) * 1000, 1))


def build_help_pages(commands: List[CommandDefinition], page_size: int) -> List[Page]:
    """Split the command listing into pages of ``page_size`` lines."""
    page_size = max(1, page_size)
    lines = [
        f"`/{c.name}`" + (f" [{c.group}]" if c.group else "") + f" - {c.description}"
        for c in commands
    ]
    total = (len(lines) + page_size - 1) // page_size
    pages = []
    for number, start in enumerate(range(0, len(lines), page_size), start=1):
        message = create_info_message(
            "Available Commands",
            "\n".join(lines[start:start + page_size]),
            hint=f"Page {number} of {total}",
        )
        pages.append(Page(embeds=message.embeds))
    return pages


async def handle_help(interaction: CommandInteraction, ctx: CommandContext) -> None:
    commands = list(ctx.commands) if ctx.commands is not None else []
    pages = build_help_pages(commands, ctx.config.help_page_size)
    await ctx.paginated_responder.send(interaction, pages, ephemeral=True)


def core_commands() -> List[CommandDefinition]:
    return [
        create_command("ping", "Check that the bot is responding.", handle_ping, group="core"),
        create_command("help", "List available commands.", handle_help, group="core"),
    ]
