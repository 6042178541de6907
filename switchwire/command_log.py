"""NDJSON audit log of executed commands.

One JSON object per line, appended after each command completes.
Lines that fail validation (truncated writes, manual edits) are
skipped on read rather than failing the whole query.
"""

import asyncio
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError

logger = structlog.get_logger("switchwire.middleware")


class CommandLogEntry(BaseModel):
    """A single executed command."""

    timestamp: float = Field(default_factory=time.time, description="Unix time of execution")
    guild_id: Optional[str] = Field(default=None)
    channel_id: Optional[str] = Field(default=None)
    user_id: str = Field(..., description="Actor id of the invoker")
    command: str = Field(..., description="Command name")
    group: Optional[str] = Field(default=None)
    options: Dict[str, Any] = Field(default_factory=dict)


class CommandLog:
    """Append-only command log stored at ``path``."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def append(self, entry: CommandLogEntry) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(entry.model_dump_json() + "\n")

    async def append_async(self, entry: CommandLogEntry) -> None:
        await asyncio.to_thread(self.append, entry)

    def get_logs_for_user(
        self,
        user_id: str,
        limit: int = 100,
        *,
        start: Optional[float] = None,
        end: Optional[float] = None,
        guild_id: Optional[str] = None,
    ) -> List[CommandLogEntry]:
        """Return up to ``limit`` entries for ``user_id``, newest first.

        Args:
            start: Only entries at or after this Unix time.
            end: Only entries at or before this Unix time.
            guild_id: Only entries from this guild.
        """
        if not self.path.exists():
            return []

        lines = self.path.read_text(encoding="utf-8").splitlines()
        results: List[CommandLogEntry] = []
        skipped = 0
        for line in reversed(lines):
            if len(results) >= limit:
                break
            if not line.strip():
                continue
            try:
                entry = CommandLogEntry.model_validate_json(line)
            except ValidationError:
                skipped += 1
                continue
            if entry.user_id != user_id:
                continue
            if start is not None and entry.timestamp < start:
                continue
            if end is not None and entry.timestamp > end:
                continue
            if guild_id is not None and entry.guild_id != guild_id:
                continue
            results.append(entry)

        if skipped:
            logger.warning("command_log_lines_skipped", count=skipped, path=str(self.path))
        return results
