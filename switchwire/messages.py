"""Standard user-facing message payloads."""

from typing import Optional

from .interactions.models import MessagePayload

ERROR_COLOR = 0xED4245
INFO_COLOR = 0x5865F2


def _embed(title: str, description: str, color: int, hint: Optional[str]) -> dict:
    embed = {"title": title, "description": description, "color": color}
    if hint:
        embed["footer"] = {"text": hint}
    return embed


def create_error_message(
    title: str,
    description: str,
    hint: Optional[str] = None,
    *,
    ephemeral: bool = True,
) -> MessagePayload:
    """Build an error embed, ephemeral by default."""
    return MessagePayload(
        embeds=[_embed(title, description, ERROR_COLOR, hint)],
        ephemeral=ephemeral,
    )


def create_info_message(title: str, description: str, hint: Optional[str] = None) -> MessagePayload:
    return MessagePayload(embeds=[_embed(title, description, INFO_COLOR, hint)])
