"""Generic JSON-over-HTTP adapter for InteractionBot.

Endpoints:
    POST /interactions       Deliver a command or action interaction.
    GET  /interactions/{id}  Everything sent for an interaction so far.
    GET  /health             Registry and paginator counters.

Responses are not pushed anywhere. Replies, defers and edits are
buffered in a per-interaction outbox; the POST returns what the
handler produced synchronously, and later edits (page turns, timeouts)
are read back with GET.
"""

from collections import OrderedDict
from typing import Any, Dict, List, Literal, Optional

import structlog
from aiohttp import web
from pydantic import BaseModel, Field, ValidationError, model_validator

from .bot import InteractionBot
from .interactions.events import ActionEvent, CommandInteraction
from .interactions.models import (
    ComponentType,
    GuildInfo,
    MemberInfo,
    MessagePayload,
    payload_to_dict,
)

logger = structlog.get_logger("switchwire.server")


class GuildModel(BaseModel):
    id: str
    owner_id: Optional[str] = None
    mod_role_ids: List[str] = Field(default_factory=list)
    role_names: Dict[str, str] = Field(default_factory=dict)

    def to_info(self) -> GuildInfo:
        return GuildInfo(
            id=self.id,
            owner_id=self.owner_id,
            mod_role_ids=tuple(self.mod_role_ids),
            role_names=dict(self.role_names),
        )


class MemberModel(BaseModel):
    role_ids: List[str] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)


class InteractionRequest(BaseModel):
    """Body of ``POST /interactions``."""

    type: Literal["command", "action"]
    id: str = Field(..., min_length=1, description="Unique interaction id")
    actor_id: str = Field(..., min_length=1)
    channel_id: Optional[str] = None
    guild: Optional[GuildModel] = None
    member: Optional[MemberModel] = None
    command_name: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)
    action_id: Optional[str] = None
    component_type: ComponentType = ComponentType.BUTTON
    values: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_target(self) -> "InteractionRequest":
        if self.type == "command" and not self.command_name:
            raise ValueError("command_name is required for command interactions")
        if self.type == "action" and not self.action_id:
            raise ValueError("action_id is required for action interactions")
        if self.values and self.component_type == ComponentType.BUTTON:
            raise ValueError("values are only accepted for select menu interactions")
        return self

    def interaction_kwargs(self) -> Dict[str, Any]:
        member = None
        if self.member is not None:
            member = MemberInfo(
                id=self.actor_id,
                role_ids=frozenset(self.member.role_ids),
                permissions=frozenset(self.member.permissions),
            )
        return {
            "guild": self.guild.to_info() if self.guild else None,
            "member": member,
            "channel_id": self.channel_id,
        }


class OutboxStore:
    """Bounded map of interaction id -> recorded responses.

    The oldest outbox is evicted once ``limit`` is exceeded.
    """

    def __init__(self, limit: int = 1000):
        self.limit = max(1, limit)
        self._outboxes: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._outboxes)

    def open(self, interaction_id: str) -> List[Dict[str, Any]]:
        outbox = self._outboxes.get(interaction_id)
        if outbox is None:
            outbox = []
            self._outboxes[interaction_id] = outbox
            while len(self._outboxes) > self.limit:
                self._outboxes.popitem(last=False)
        return outbox

    def get(self, interaction_id: str) -> Optional[List[Dict[str, Any]]]:
        return self._outboxes.get(interaction_id)


BOT_KEY = web.AppKey("bot", InteractionBot)
OUTBOX_KEY = web.AppKey("outboxes", OutboxStore)


class _BufferedResponses:
    """Records outbound responses instead of sending them."""

    outbox: List[Dict[str, Any]]

    async def _send_reply(self, payload: MessagePayload) -> None:
        self.outbox.append({"type": "reply", "payload": payload_to_dict(payload)})

    async def _send_defer_update(self) -> None:
        self.outbox.append({"type": "defer_update"})

    async def _send_edit(self, payload: MessagePayload) -> None:
        self.outbox.append({"type": "edit", "payload": payload_to_dict(payload)})


class BufferedCommandInteraction(_BufferedResponses, CommandInteraction):
    def __init__(self, outbox: List[Dict[str, Any]], *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.outbox = outbox


class BufferedActionEvent(_BufferedResponses, ActionEvent):
    def __init__(self, outbox: List[Dict[str, Any]], *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.outbox = outbox


async def handle_interaction(request: web.Request) -> web.Response:
    bot = request.app[BOT_KEY]
    outboxes = request.app[OUTBOX_KEY]

    try:
        body = InteractionRequest.model_validate_json(await request.read())
    except ValidationError as e:
        logger.info("invalid_interaction_body", errors=e.error_count())
        return web.json_response(
            {
                "error": "invalid interaction",
                "details": e.errors(include_url=False, include_context=False),
            },
            status=400,
        )

    outbox = outboxes.open(body.id)
    start = len(outbox)
    if body.type == "command":
        interaction = BufferedCommandInteraction(
            outbox,
            body.id,
            body.actor_id,
            body.command_name,
            options=body.options,
            **body.interaction_kwargs(),
        )
        handled = await bot.handle_command(interaction)
    else:
        event = BufferedActionEvent(
            outbox,
            body.id,
            body.actor_id,
            body.action_id,
            component_type=body.component_type,
            values=body.values,
            **body.interaction_kwargs(),
        )
        handled = await bot.handle_action(event)

    return web.json_response({"handled": handled, "responses": outbox[start:]})


async def get_outbox(request: web.Request) -> web.Response:
    interaction_id = request.match_info["interaction_id"]
    outbox = request.app[OUTBOX_KEY].get(interaction_id)
    if outbox is None:
        return web.json_response({"error": "unknown interaction"}, status=404)
    return web.json_response({"id": interaction_id, "responses": list(outbox)})


async def health(request: web.Request) -> web.Response:
    bot = request.app[BOT_KEY]
    return web.json_response({
        "status": "ok",
        "registrations": len(bot.registry),
        "active_paginators": bot.paginated_responder.active_count,
        "commands": len(bot.commands),
    })


def create_app(bot: InteractionBot, *, outbox_limit: Optional[int] = None) -> web.Application:
    """Build the aiohttp application around ``bot``.

    The bot is started and stopped with the application.
    """
    app = web.Application()
    app[BOT_KEY] = bot
    if outbox_limit is None:
        outbox_limit = bot.config.outbox_limit
    app[OUTBOX_KEY] = OutboxStore(outbox_limit)
    app.router.add_post("/interactions", handle_interaction)
    app.router.add_get("/interactions/{interaction_id}", get_outbox)
    app.router.add_get("/health", health)

    async def _start_bot(app: web.Application) -> None:
        await bot.start()

    async def _stop_bot(app: web.Application) -> None:
        await bot.stop()

    app.on_startup.append(_start_bot)
    app.on_cleanup.append(_stop_bot)
    return app
