"""Ordered middleware pipeline for command execution.

Each step receives the shared MiddlewareContext and a continuation.
Calling the continuation runs the rest of the chain; not calling it
short-circuits everything downstream, including the command itself.
Steps may do work before and after the continuation.

The pipeline itself catches nothing: exceptions from any step or from
the final handler reach the caller of ``run_middleware_chain`` unless
an earlier step wraps its continuation (see ErrorMiddleware).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Sequence

from ..exceptions import DoubleContinuationError
from ..interactions.events import CommandInteraction
from .command_config import CommandConfig

if TYPE_CHECKING:
    from ..commands.base import CommandDefinition

Continuation = Callable[[], Awaitable[None]]


@dataclass
class MiddlewareContext:
    """Pipeline-scoped data shared by reference with every step.

    Attributes:
        interaction: The command interaction being executed.
        command: The resolved command definition.
        logger: Logger bound with command/interaction fields.
        config: The command's CommandConfig.
        state: Free-form bag for steps to pass data downstream.
    """
    interaction: CommandInteraction
    command: "CommandDefinition"
    logger: Any
    config: CommandConfig = field(default_factory=CommandConfig)
    state: Dict[str, Any] = field(default_factory=dict)


class CommandMiddleware(ABC):
    """A single pipeline step."""

    name: str = ""

    @abstractmethod
    async def execute(self, context: MiddlewareContext, call_next: Continuation) -> None:
        """Run the step. Await ``call_next()`` at most once to continue."""
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


@dataclass
class MiddlewareConfiguration:
    """Steps run before and after the built-in chain tail."""
    before: List[CommandMiddleware] = field(default_factory=list)
    after: List[CommandMiddleware] = field(default_factory=list)


class _ChainRun:
    """State of one ``run_middleware_chain`` invocation.

    ``pointer`` is the highest step index entered so far; it starts at
    -1 and only moves forward.
    """

    def __init__(
        self,
        steps: Sequence[CommandMiddleware],
        context: MiddlewareContext,
        final_handler: Continuation,
    ):
        self.steps = steps
        self.context = context
        self.final_handler = final_handler
        self.pointer = -1

    async def dispatch(self, index: int) -> None:
        if index <= self.pointer:
            caller = self.steps[index - 1].name if 0 < index <= len(self.steps) else None
            raise DoubleContinuationError(step=caller, index=index)
        self.pointer = index
        if index >= len(self.steps):
            await self.final_handler()
            return
        await self.steps[index].execute(self.context, partial(self.dispatch, index + 1))


async def run_middleware_chain(
    steps: Sequence[CommandMiddleware],
    context: MiddlewareContext,
    final_handler: Continuation,
) -> None:
    """Run ``steps`` in order around ``final_handler``.

    Raises:
        DoubleContinuationError: A step called its continuation twice
            or out of order.
    """
    await _ChainRun(list(steps), context, final_handler).dispatch(0)
