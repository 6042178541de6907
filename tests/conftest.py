"""Shared fixtures: recording interactions and a controllable clock."""

import pytest

from switchwire.interactions.events import ActionEvent, CommandInteraction
from switchwire.interactions.models import GuildInfo, MemberInfo
from switchwire.interactions.registry import HandlerRegistry


class FakeClock:
    """Callable time source that only moves when told to."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _Recording:
    """Records every outbound response as a (kind, payload) tuple."""

    fail_on = ()

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sent = []

    async def _send_reply(self, payload):
        if "reply" in self.fail_on:
            raise RuntimeError("reply rejected by platform")
        self.sent.append(("reply", payload))

    async def _send_defer_update(self):
        self.sent.append(("defer", None))

    async def _send_edit(self, payload):
        if "edit" in self.fail_on:
            raise RuntimeError("edit rejected by platform")
        self.sent.append(("edit", payload))

    def kinds(self):
        return [kind for kind, _ in self.sent]

    def last(self, kind):
        for sent_kind, payload in reversed(self.sent):
            if sent_kind == kind:
                return payload
        return None


class RecordingCommand(_Recording, CommandInteraction):
    pass


class RecordingAction(_Recording, ActionEvent):
    pass


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return HandlerRegistry(clock=clock)


@pytest.fixture
def guild():
    return GuildInfo(
        id="guild-1",
        owner_id="owner-1",
        mod_role_ids=("mods",),
        role_names={"mods": "Moderators", "vip": "VIP"},
    )


@pytest.fixture
def make_command(guild):
    """Factory for recording CommandInteractions.

    ``member`` defaults to a member of ``guild`` with no roles or
    permissions; pass ``in_guild=False`` for a direct message.
    """
    def _make(
        interaction_id="cmd-1",
        actor_id="user-1",
        command_name="test",
        *,
        options=None,
        in_guild=True,
        roles=(),
        permissions=(),
        member=True,
        fail_on=(),
    ):
        interaction = RecordingCommand(
            interaction_id,
            actor_id,
            command_name,
            options=options,
            guild=guild if in_guild else None,
            member=(
                MemberInfo(id=actor_id, role_ids=frozenset(roles), permissions=frozenset(permissions))
                if member else None
            ),
            channel_id="chan-1",
        )
        interaction.fail_on = tuple(fail_on)
        return interaction
    return _make


@pytest.fixture
def make_event():
    def _make(action_id, actor_id="user-1", interaction_id="evt-1", **kwargs):
        return RecordingAction(interaction_id, actor_id, action_id, **kwargs)
    return _make
