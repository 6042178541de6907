"""Per-user command cooldown tracking.

Records when each ``actor:command`` pair may run again. Expired keys
are pruned lazily once the table grows past PRUNE_THRESHOLD, so
memory stays bounded without a background task.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import structlog

logger = structlog.get_logger("switchwire.middleware")

PRUNE_THRESHOLD = 100


@dataclass
class CooldownState:
    """Result of a cooldown check."""
    allowed: bool
    remaining_seconds: int = 0

    @property
    def user_message(self) -> str:
        if self.allowed:
            return ""
        plural = "s" if self.remaining_seconds != 1 else ""
        return (
            f"Please wait {self.remaining_seconds} second{plural} "
            "before using this command again."
        )


class CommandCooldowns:
    """Tracks cooldown expiry per actor and command.

    Args:
        clock: Time source in seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._expires: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._expires)

    @staticmethod
    def _key(actor_id: str, command: str) -> str:
        return f"{actor_id}:{command}"

    def check_and_set(self, actor_id: str, command: str, duration: float) -> CooldownState:
        """Check the cooldown and, if clear, start a new one.

        Returns a CooldownState whose ``allowed`` is False while a
        previous cooldown is still running. Rejected calls do not
        extend the cooldown.
        """
        if duration <= 0:
            return CooldownState(allowed=True)

        key = self._key(actor_id, command)
        now = self._clock()
        expires_at = self._expires.get(key)
        if expires_at is not None and now < expires_at:
            remaining = math.ceil(expires_at - now)
            logger.debug(
                "command_cooldown_active",
                command=command,
                actor="..." + actor_id[-4:],
                remaining=remaining,
            )
            return CooldownState(allowed=False, remaining_seconds=remaining)

        self._expires[key] = now + duration
        if len(self._expires) > PRUNE_THRESHOLD:
            self._prune(now)
        return CooldownState(allowed=True)

    def clear(self, actor_id: str, command: str) -> None:
        self._expires.pop(self._key(actor_id, command), None)

    def reset(self) -> None:
        """Drop all cooldown state (for testing)."""
        self._expires.clear()

    def _prune(self, now: float) -> None:
        stale = [key for key, expiry in self._expires.items() if now >= expiry]
        for key in stale:
            del self._expires[key]
        if stale:
            logger.debug(
                "command_cooldowns_pruned", removed=len(stale), remaining=len(self._expires)
            )


# Global singleton
_cooldowns: Optional[CommandCooldowns] = None


def get_command_cooldowns() -> CommandCooldowns:
    """Get or create the global CommandCooldowns instance."""
    global _cooldowns
    if _cooldowns is None:
        _cooldowns = CommandCooldowns()
    return _cooldowns
