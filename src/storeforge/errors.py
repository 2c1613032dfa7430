"""Error taxonomy shared by handlers, the gateway and the dispatcher.

Every error carries a short user-facing message and, where one exists, a
suggested alternative. The dispatcher converts these into failed
``ToolResult`` envelopes; nothing in this hierarchy crosses that boundary.
"""

from __future__ import annotations

from typing import Any


class StoreForgeError(Exception):
    """Base class for all expected failures."""

    kind: str = "error"

    def __init__(
        self,
        message: str,
        *,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ValidationError(StoreForgeError):
    """Missing or malformed arguments."""

    kind = "validation"


class NotFoundError(StoreForgeError):
    """Referenced entity is absent or outside the tenant scope."""

    kind = "not_found"


class AuthorizationError(StoreForgeError):
    """Cross-tenant access attempt."""

    kind = "authorization"


class UpstreamError(StoreForgeError):
    """The data-store call failed."""

    kind = "upstream"
