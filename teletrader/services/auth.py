from __future__ import annotations

from typing import Iterable


def _normalize(username: str) -> str:
    return (username or "").strip().lstrip("@").lower()


class AllowList:
    """Case-insensitive set of Telegram usernames allowed to talk to the bot."""

    def __init__(self, usernames: Iterable[str]) -> None:
        self._usernames = frozenset(n for n in (_normalize(u) for u in usernames) if n)

    def __len__(self) -> int:
        return len(self._usernames)

    def is_allowed(self, username: str | None) -> bool:
        name = _normalize(username or "")
        if not name:
            return False
        return name in self._usernames
