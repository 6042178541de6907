"""Command middleware pipeline for switchwire.

Provides run_middleware_chain, the CommandMiddleware ABC, the shared
MiddlewareContext, CommandConfig and the standard gating steps.
"""

from .auto import auto_middleware
from .builtin import (
    AuditLogMiddleware,
    CooldownMiddleware,
    ErrorMiddleware,
    GuildMiddleware,
    LoggingMiddleware,
)
from .command_config import CommandConfig, CommandConfigBuilder, PermissionRequirement
from .permissions import PermissionMiddleware
from .pipeline import (
    CommandMiddleware,
    MiddlewareConfiguration,
    MiddlewareContext,
    run_middleware_chain,
)

__all__ = [
    "AuditLogMiddleware",
    "CommandConfig",
    "CommandConfigBuilder",
    "CommandMiddleware",
    "CooldownMiddleware",
    "ErrorMiddleware",
    "GuildMiddleware",
    "LoggingMiddleware",
    "MiddlewareConfiguration",
    "MiddlewareContext",
    "PermissionMiddleware",
    "PermissionRequirement",
    "auto_middleware",
    "run_middleware_chain",
]
