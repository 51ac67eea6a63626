"""Compiled catalog artifacts on disk."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path

from msgsync.catalog.state import Compiled

logger = logging.getLogger(__name__)

CompiledListener = Callable[[str, str, Path], None]


class CompiledWriter:
    """Writes `<owner>.<load_id>.<locale>.json` artifacts and notifies listeners."""

    def __init__(self, out_dir: Path, owner_key: str) -> None:
        self._out_dir = out_dir.resolve()
        self._owner_key = owner_key
        self._listeners: list[CompiledListener] = []

    @property
    def out_dir(self) -> Path:
        """Return the artifact directory."""
        return self._out_dir

    def subscribe(self, listener: CompiledListener) -> None:
        """Register a callback receiving `(load_id, locale, path)` after each write."""
        self._listeners.append(listener)

    def artifact_path(self, load_id: str, locale: str) -> Path:
        """Return the artifact path of one load unit and locale."""
        return self._out_dir / f"{self._owner_key}.{load_id}.{locale}.json"

    def manifest_path(self, agent_key: str) -> Path:
        """Return the URL manifest path of an agent."""
        return self._out_dir / f"{self._owner_key}.{agent_key}.urls.json"

    def write(self, load_id: str, locale: str, compiled: Compiled, plural: str | None) -> Path:
        """Write one compiled catalog; `plural` is kept only when it has plurals."""
        payload = {
            "items": compiled.to_json(),
            "plural": plural if compiled.has_plurals else None,
        }
        path = self.artifact_path(load_id, locale)
        self._atomic_write_json(path, payload)
        logger.debug("Wrote compiled catalog %s", path)
        for listener in self._listeners:
            listener(load_id, locale, path)
        return path

    def write_manifest(self, agent_key: str, manifest: list[list[object]]) -> Path:
        """Write the localized URL manifest of an agent."""
        path = self.manifest_path(agent_key)
        self._atomic_write_json(path, {"manifest": manifest})
        return path

    def _atomic_write_json(self, path: Path, payload: dict[str, object]) -> None:
        self._out_dir.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, sort_keys=True, ensure_ascii=False)
            handle.write("\n")
        tmp.replace(path)
