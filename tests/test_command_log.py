"""Tests for the NDJSON command log."""

import json

import pytest

from switchwire.command_log import CommandLog, CommandLogEntry


@pytest.fixture
def log(tmp_path):
    return CommandLog(tmp_path / "logs" / "commands.ndjson")


def _entry(user_id="u1", command="ping", timestamp=1000.0, guild_id="g1"):
    return CommandLogEntry(
        timestamp=timestamp, guild_id=guild_id, user_id=user_id, command=command
    )


class TestCommandLog:

    def test_missing_file_returns_empty(self, log):
        assert log.get_logs_for_user("u1") == []

    def test_append_writes_one_json_line(self, log):
        log.append(_entry())
        lines = log.path.read_text().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["command"] == "ping"

    def test_newest_first_and_limited(self, log):
        for n in range(5):
            log.append(_entry(command=f"cmd{n}", timestamp=1000.0 + n))
        entries = log.get_logs_for_user("u1", limit=3)
        assert [e.command for e in entries] == ["cmd4", "cmd3", "cmd2"]

    def test_filters(self, log):
        log.append(_entry(user_id="u1", timestamp=100, guild_id="g1"))
        log.append(_entry(user_id="u2", timestamp=200, guild_id="g1"))
        log.append(_entry(user_id="u1", timestamp=300, guild_id="g2"))
        log.append(_entry(user_id="u1", timestamp=400, guild_id="g1"))

        assert [e.timestamp for e in log.get_logs_for_user("u1")] == [400, 300, 100]
        assert [e.timestamp for e in log.get_logs_for_user("u1", guild_id="g1")] == [400, 100]
        assert [e.timestamp for e in log.get_logs_for_user("u1", start=150, end=350)] == [300]

    def test_corrupt_lines_skipped(self, log):
        log.append(_entry(command="before"))
        with open(log.path, "a") as f:
            f.write("{not json\n")
            f.write('{"command": "missing user"}\n')
        log.append(_entry(command="after"))

        assert [e.command for e in log.get_logs_for_user("u1")] == ["after", "before"]

    @pytest.mark.asyncio
    async def test_append_async(self, log):
        await log.append_async(_entry(command="async"))
        assert log.get_logs_for_user("u1")[0].command == "async"
