"""Paginated messages backed by ephemeral navigation handlers."""

from .paginator import (
    NavAction,
    PaginationSession,
    Paginator,
    PaginatorState,
)
from .responder import PaginatedResponder

__all__ = [
    "NavAction",
    "PaginatedResponder",
    "PaginationSession",
    "Paginator",
    "PaginatorState",
]
