"""Rendering of compiled catalog artifacts."""

from __future__ import annotations

import gettext
import json
import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from msgsync.compiler.elements import (
    CompiledElement,
    ElementDecodeError,
    Text,
    element_from_json,
    plural_from_json,
)
from msgsync.compiler.placeholders import TagRenderer, render

logger = logging.getLogger(__name__)

DEFAULT_PLURAL = "n == 1 ? 0 : 1"


def missing_marker(index: int) -> str:
    """Return the marker rendered for an index with no entry."""
    return f"[i18n-404:{index}]"


def invalid_marker(index: int, raw: object) -> str:
    """Return the marker rendered for an undecodable entry."""
    return f"[i18n-400:{index}({json.dumps(raw, ensure_ascii=False)})]"


class Runtime:
    """Read-only view over one compiled catalog."""

    def __init__(self, items: Sequence[object] = (), plural: str | None = None) -> None:
        self._items = list(items)
        self._plural = plural or DEFAULT_PLURAL
        self._plural_fn: Callable[[int], int] = gettext.c2py(self._plural)

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> Runtime:
        """Build from the `{"items": [...], "plural": ...}` artifact form."""
        items = payload.get("items", [])
        plural = payload.get("plural")
        if not isinstance(items, list):
            raise ValueError("Compiled catalog 'items' must be a list.")
        if plural is not None and not isinstance(plural, str):
            raise ValueError("Compiled catalog 'plural' must be a string or null.")
        return cls(items, plural)

    @classmethod
    def from_file(cls, path: Path) -> Runtime:
        """Load a compiled artifact from disk."""
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, dict):
            raise ValueError(f"Compiled catalog at {path} must be a JSON object.")
        return cls.from_payload(payload)

    def __len__(self) -> int:
        return len(self._items)

    def cx(self, index: int) -> CompiledElement:
        """Return the compiled element at `index`, or a marker text."""
        raw = self._items[index] if 0 <= index < len(self._items) else None
        if raw is None:
            return Text(missing_marker(index))
        try:
            return element_from_json(raw)
        except ElementDecodeError:
            logger.debug("Undecodable compiled entry %d: %r", index, raw)
            return Text(invalid_marker(index, raw))

    def t(self, index: int, args: Sequence[object] = (), tag: TagRenderer | None = None) -> str:
        """Render the message at `index`."""
        return render(self.cx(index), args, tag)

    def tp(self, index: int) -> tuple[str, ...]:
        """Return the plural forms at `index`; empty when absent or invalid."""
        raw = self._items[index] if 0 <= index < len(self._items) else None
        if raw is None:
            return ()
        try:
            return plural_from_json(raw).forms
        except ElementDecodeError:
            return ()

    def plural_index(self, n: int) -> int:
        """Return the plural form index for a count."""
        return self._plural_fn(n)
