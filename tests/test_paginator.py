"""Tests for Paginator navigation, termination and the idle timer."""

import asyncio
from unittest.mock import MagicMock

import pytest

from switchwire.exceptions import PaginationError
from switchwire.interactions.models import ActionRow, Button, Page
from switchwire.interactions.registry import HandlerRegistry, UNAUTHORIZED_MESSAGE
from switchwire.pagination.paginator import (
    EMPTY_MESSAGE,
    STOPPED_NOTICE,
    TIMED_OUT_NOTICE,
    Paginator,
    PaginatorState,
)


def _pages(count):
    return [Page(content=f"Page {n}") for n in range(1, count + 1)]


def _nav(payload):
    return payload.components[-1].components


def _indicator(payload):
    return _nav(payload)[2].label


@pytest.fixture
def interaction(make_command):
    return make_command("cmd-1", actor_id="owner-1")


@pytest.fixture
def make_paginator(interaction, registry, clock):
    created = []

    def _make(pages=None, **kwargs):
        kwargs.setdefault("clock", clock)
        paginator = Paginator(interaction, _pages(3) if pages is None else pages, registry, **kwargs)
        created.append(paginator)
        return paginator

    yield _make
    for paginator in created:
        paginator.dispose()


# -------------------------------------------------------------------
# Start
# -------------------------------------------------------------------

class TestStart:

    @pytest.mark.asyncio
    async def test_first_page_rendered_with_boundary_buttons(self, make_paginator, interaction):
        paginator = make_paginator()
        await paginator.start()

        assert paginator.state is PaginatorState.ACTIVE
        assert interaction.kinds() == ["reply"]
        payload = interaction.last("reply")
        assert payload.content == "Page 1"
        first, prev, indicator, nxt, stop = _nav(payload)
        assert first.disabled and prev.disabled
        assert indicator.label == "1/3"
        assert indicator.disabled
        assert not nxt.disabled
        assert not stop.disabled

    @pytest.mark.asyncio
    async def test_registers_four_owner_scoped_handlers(self, make_paginator, registry):
        paginator = make_paginator()
        await paginator.start()

        assert len(registry) == 4
        ids = paginator.session.nav_registration_ids
        assert len(ids) == 4
        for action_id in ids:
            assert registry.get(action_id).owner_id == "owner-1"
        assert registry.get("page:cmd-1:stop").single_use is True
        assert "page:cmd-1:current" not in registry

    @pytest.mark.asyncio
    async def test_explicit_owner_overrides_invoker(self, make_paginator, registry):
        paginator = make_paginator(owner_id="someone-else")
        await paginator.start()
        assert registry.get("page:cmd-1:next").owner_id == "someone-else"

    @pytest.mark.asyncio
    async def test_empty_pages_reply_once_without_handlers(self, make_paginator, interaction, registry):
        on_close = MagicMock()
        paginator = make_paginator(pages=[], on_close=on_close)
        await paginator.start()

        assert interaction.kinds() == ["reply"]
        assert interaction.last("reply").content == EMPTY_MESSAGE
        assert len(registry) == 0
        assert paginator.state is PaginatorState.IDLE
        assert paginator.active is False
        on_close.assert_called_once_with(paginator)

    @pytest.mark.asyncio
    async def test_page_components_kept_above_nav_row(self, make_paginator, interaction):
        extra = ActionRow((Button("vote", "Vote"),))
        paginator = make_paginator(pages=[Page(content="Poll", components=[extra])])
        await paginator.start()

        payload = interaction.last("reply")
        assert payload.components[0] == extra
        assert _indicator(payload) == "1/1"
        assert _nav(payload)[3].disabled

    @pytest.mark.asyncio
    async def test_send_failure_disposes_and_raises(self, make_command, registry):
        failing = make_command("cmd-9", fail_on=("reply",))
        paginator = Paginator(failing, _pages(2), registry)
        with pytest.raises(RuntimeError):
            await paginator.start()
        assert len(registry) == 0
        assert paginator.state is PaginatorState.DISPOSED

    @pytest.mark.asyncio
    async def test_second_start_is_ignored(self, make_paginator, interaction):
        paginator = make_paginator()
        await paginator.start()
        await paginator.start()
        assert interaction.kinds() == ["reply"]

    def test_non_positive_timeouts_rejected(self, interaction, registry):
        with pytest.raises(PaginationError):
            Paginator(interaction, _pages(2), registry, timeout=0)
        with pytest.raises(PaginationError):
            Paginator(interaction, _pages(2), registry, idle_timeout=-1)


# -------------------------------------------------------------------
# Navigation
# -------------------------------------------------------------------

class TestNavigation:

    @pytest.mark.asyncio
    async def test_go_to_clamps_negative_to_first(self, make_paginator, interaction):
        paginator = make_paginator()
        await paginator.start()
        await paginator.go_to(2)
        await paginator.go_to(-5)

        payload = interaction.last("edit")
        assert payload.content == "Page 1"
        assert _indicator(payload) == "1/3"
        assert paginator.current_index == 0

    @pytest.mark.asyncio
    async def test_go_to_clamps_overflow_to_last(self, make_paginator, interaction):
        paginator = make_paginator()
        await paginator.start()
        await paginator.go_to(99)

        payload = interaction.last("edit")
        assert payload.content == "Page 3"
        first, prev, _, nxt, _ = _nav(payload)
        assert not first.disabled and not prev.disabled
        assert nxt.disabled

    @pytest.mark.asyncio
    async def test_go_to_updates_last_interaction(self, make_paginator, clock):
        paginator = make_paginator()
        await paginator.start()
        clock.advance(42)
        await paginator.go_to(1)
        assert paginator.session.last_interaction_at == clock.now

    @pytest.mark.asyncio
    async def test_buttons_dispatched_through_registry(
        self, make_paginator, registry, interaction, make_event
    ):
        paginator = make_paginator()
        await paginator.start()

        event = make_event("page:cmd-1:next", actor_id="owner-1")
        assert await registry.dispatch(event) is True
        assert event.kinds() == ["defer"]
        assert _indicator(interaction.last("edit")) == "2/3"

        await registry.dispatch(make_event("page:cmd-1:next", actor_id="owner-1"))
        await registry.dispatch(make_event("page:cmd-1:prev", actor_id="owner-1"))
        assert paginator.current_index == 1

        await registry.dispatch(make_event("page:cmd-1:first", actor_id="owner-1"))
        assert paginator.current_index == 0

    @pytest.mark.asyncio
    async def test_other_actor_cannot_navigate(self, make_paginator, registry, make_event):
        paginator = make_paginator()
        await paginator.start()

        event = make_event("page:cmd-1:next", actor_id="stranger")
        assert await registry.dispatch(event) is True
        assert event.last("reply").content == UNAUTHORIZED_MESSAGE
        assert paginator.current_index == 0
        assert paginator.active

    @pytest.mark.asyncio
    async def test_overlapping_navigation_renders_committed_index(self, make_paginator, interaction):
        paginator = make_paginator()
        await paginator.start()
        await asyncio.gather(paginator.go_to(1), paginator.go_to(2))

        assert paginator.current_index == 2
        edits = [p for kind, p in interaction.sent if kind == "edit"]
        assert [_indicator(p) for p in edits] == ["2/3", "3/3"]
        for payload in edits:
            assert payload.content == f"Page {_indicator(payload)[0]}"


# -------------------------------------------------------------------
# Stop and dispose
# -------------------------------------------------------------------

class TestStop:

    @pytest.mark.asyncio
    async def test_stop_button_strips_controls_and_releases(
        self, make_paginator, registry, interaction, make_event
    ):
        on_close = MagicMock()
        paginator = make_paginator(on_close=on_close)
        await paginator.start()
        await paginator.go_to(1)

        event = make_event("page:cmd-1:stop", actor_id="owner-1")
        assert await registry.dispatch(event) is True

        final = interaction.last("edit")
        assert final.components == []
        assert final.content == f"Page 2\n\n{STOPPED_NOTICE}"
        assert paginator.state is PaginatorState.STOPPED
        assert paginator.active is False
        assert len(registry) == 0
        on_close.assert_called_once_with(paginator)

    @pytest.mark.asyncio
    async def test_stop_after_inactive_is_noop(self, make_paginator, interaction):
        paginator = make_paginator()
        await paginator.start()
        await paginator.stop()
        sent = len(interaction.sent)

        await paginator.stop()
        assert len(interaction.sent) == sent
        assert paginator.state is PaginatorState.STOPPED

    @pytest.mark.asyncio
    async def test_go_to_on_inactive_session_only_acknowledges(
        self, make_paginator, interaction, make_event
    ):
        paginator = make_paginator()
        await paginator.start()
        await paginator.stop()
        sent = len(interaction.sent)

        event = make_event("page:cmd-1:next", actor_id="owner-1")
        await paginator.go_to(2, event)
        assert event.kinds() == ["defer"]
        assert len(interaction.sent) == sent
        assert paginator.current_index == 0

    @pytest.mark.asyncio
    async def test_dispose_is_idempotent_and_silent(self, make_paginator, registry, interaction):
        on_close = MagicMock()
        paginator = make_paginator(on_close=on_close)
        await paginator.start()

        paginator.dispose()
        paginator.dispose()
        assert len(registry) == 0
        assert paginator.state is PaginatorState.DISPOSED
        assert interaction.kinds() == ["reply"]
        on_close.assert_called_once()

    @pytest.mark.asyncio
    async def test_stop_render_failure_still_releases(self, make_command, registry, clock):
        interaction = make_command("cmd-2")
        paginator = Paginator(interaction, _pages(2), registry, clock=clock)
        await paginator.start()
        interaction.fail_on = ("edit",)

        with pytest.raises(RuntimeError):
            await paginator.stop()
        assert len(registry) == 0
        assert paginator.active is False


# -------------------------------------------------------------------
# Idle timer
# -------------------------------------------------------------------

class TestIdleTimer:

    @pytest.mark.asyncio
    async def test_recent_activity_refreshes_then_expires_once(
        self, make_paginator, interaction, clock
    ):
        start = clock.now
        paginator = make_paginator(timeout=5, idle_timeout=2)
        await paginator.start()

        clock.now = start + 4
        await paginator.go_to(1)

        clock.now = start + 5
        assert await paginator._on_timer_fire() == pytest.approx(1.0)
        assert paginator.active

        clock.now = start + 6
        assert await paginator._on_timer_fire() is None
        assert paginator.state is PaginatorState.EXPIRED
        final = interaction.last("edit")
        assert final.components == []
        assert final.content == f"Page 2\n\n{TIMED_OUT_NOTICE}"

        edits = interaction.kinds().count("edit")
        assert await paginator._on_timer_fire() is None
        assert interaction.kinds().count("edit") == edits

    @pytest.mark.asyncio
    async def test_idle_session_expires_on_first_fire(self, make_paginator, registry, clock):
        paginator = make_paginator(timeout=5, idle_timeout=2)
        await paginator.start()
        clock.advance(5)
        assert await paginator._on_timer_fire() is None
        assert paginator.state is PaginatorState.EXPIRED
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_stop_then_timer_fire_is_noop(self, make_paginator, interaction, clock):
        paginator = make_paginator(timeout=5, idle_timeout=2)
        await paginator.start()
        await paginator.stop()
        clock.advance(10)

        assert await paginator._on_timer_fire() is None
        assert paginator.state is PaginatorState.STOPPED
        assert TIMED_OUT_NOTICE not in interaction.last("edit").content

    @pytest.mark.asyncio
    async def test_real_timer_expires_session(self, interaction):
        registry = HandlerRegistry()
        paginator = Paginator(interaction, _pages(2), registry, timeout=0.05, idle_timeout=0.02)
        await paginator.start()

        for _ in range(50):
            if not paginator.active:
                break
            await asyncio.sleep(0.02)

        assert paginator.state is PaginatorState.EXPIRED
        assert len(registry) == 0
        assert interaction.last("edit").content.endswith(TIMED_OUT_NOTICE)
