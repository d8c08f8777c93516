from __future__ import annotations

from typing import Awaitable, TypeVar

T = TypeVar("T")


class BotError(Exception):
    """Base bot error."""


class UpstreamError(BotError):
    """Raised when the brokerage or language backend fails."""


class ValidationError(BotError):
    """Raised for invalid user input."""


class CallbackError(ValidationError):
    """Raised for malformed, foreign or tampered callback tokens."""


class ToolCallError(BotError):
    """Raised when the language backend requests a tool we cannot run."""


async def guard_upstream(action: str, awaitable: Awaitable[T]) -> T:
    """Await a collaborator call, re-raising foreign exceptions as UpstreamError."""
    try:
        return await awaitable
    except BotError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise UpstreamError(f"failed to {action}: {exc}") from exc
