"""Stable integer identities for catalog keys."""

from __future__ import annotations

from collections.abc import Iterable

from msgsync.messages.models import Message


def message_key(message: Message) -> str:
    """Return the catalog key of a message."""
    return message.key


class IndexTracker:
    """Assigns insertion-ordered indices that are never reused."""

    def __init__(self) -> None:
        self._indices: dict[str, int] = {}
        self._next_index = 0

    def get(self, key: str) -> int:
        """Return the index of `key`, assigning the next one on first sight."""
        index = self._indices.get(key)
        if index is not None:
            return index
        index = self._next_index
        self._indices[key] = index
        self._next_index += 1
        return index

    def reload(self, keys: Iterable[str]) -> None:
        """Reset and reseed indices in the given key order."""
        self._indices = {}
        self._next_index = 0
        for key in keys:
            self.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._indices

    def __len__(self) -> int:
        return self._next_index

    def keys(self) -> tuple[str, ...]:
        """Return tracked keys in index order."""
        return tuple(self._indices)
