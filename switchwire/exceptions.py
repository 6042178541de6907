"""Custom exception hierarchy for switchwire.

Provides error classification across the interaction registry, the
pagination controller and the command middleware pipeline.

Registry-level failures (expired, unauthorized, handler failure) are
recovered inside ``HandlerRegistry.dispatch`` and never surface as
exceptions. The classes below cover the conditions that do propagate.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Classification of errors for escalation in logs."""
    PERMANENT = "permanent"            # Bad input or programmer error
    INFRASTRUCTURE = "infrastructure"  # Config or environment problems


class SwitchwireError(Exception):
    """Base exception for all switchwire errors.

    Attributes:
        message: Human-readable error description.
        category: Error classification, logged with command failures.
        module: Originating module name (e.g. "middleware.pipeline").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.category = category
        self.module = module
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return (
            f"{cls}({self.message!r}, category={self.category.value!r}, "
            f"module={self.module!r})"
        )


# ---------------------------------------------------------------------------
# Interaction registry exceptions
# ---------------------------------------------------------------------------

class InteractionError(SwitchwireError):
    """Error in the ephemeral interaction registry."""

    def __init__(
        self,
        message: str = "",
        *,
        action_id: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.action_id = action_id
        super().__init__(
            message, category=category, module=module or "interactions", **context
        )


class DuplicateActionError(InteractionError):
    """An action id is already registered.

    Action ids are unique within a registry for as long as the
    registration is alive.
    """


# ---------------------------------------------------------------------------
# Pagination exceptions
# ---------------------------------------------------------------------------

class PaginationError(SwitchwireError):
    """Error while starting or rendering a pagination session."""

    def __init__(
        self,
        message: str = "",
        *,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        super().__init__(
            message, category=category, module=module or "pagination", **context
        )


# ---------------------------------------------------------------------------
# Middleware exceptions
# ---------------------------------------------------------------------------

class MiddlewareError(SwitchwireError):
    """Error raised by the command middleware pipeline."""

    def __init__(
        self,
        message: str = "",
        *,
        step: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.step = step
        super().__init__(
            message, category=category, module=module or "middleware", **context
        )


class DoubleContinuationError(MiddlewareError):
    """A middleware step called its continuation more than once.

    Also raised when a continuation is invoked out of order. This is
    a defect in the step itself and is never swallowed by the
    pipeline.
    """

    def __init__(
        self,
        message: str = "next() called multiple times",
        *,
        step: Optional[str] = None,
        index: Optional[int] = None,
        **context: Any,
    ) -> None:
        self.index = index
        super().__init__(
            message, step=step, module="middleware.pipeline", **context
        )


# ---------------------------------------------------------------------------
# Command exceptions
# ---------------------------------------------------------------------------

class CommandError(SwitchwireError):
    """A command failed in a way its author wants shown to the user.

    ErrorMiddleware shows the message to the user and logs it as a
    warning without a traceback.
    """

    def __init__(
        self,
        message: str = "",
        *,
        command: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.PERMANENT,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.command = command
        super().__init__(
            message, category=category, module=module or "commands", **context
        )


# ---------------------------------------------------------------------------
# Configuration exceptions
# ---------------------------------------------------------------------------

class ConfigurationError(SwitchwireError):
    """Invalid or missing configuration.

    Defaults to INFRASTRUCTURE because config issues are environmental
    and won't resolve by retrying.
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(
            message, category=category, module=module or "config", **context
        )
