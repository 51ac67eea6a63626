"""Extractor registry with deterministic lookup."""

from __future__ import annotations

from dataclasses import dataclass, field

from msgsync.extractors.base import Extractor
from msgsync.extractors.python import PythonCallExtractor


@dataclass(slots=True)
class ExtractorRegistry:
    """Extractors by name, in registration order."""

    _extractors: dict[str, Extractor] = field(default_factory=dict)

    def register(self, extractor: Extractor) -> None:
        """Register an extractor under its name."""
        if extractor.name in self._extractors:
            raise ValueError(f"Extractor already registered: {extractor.name}")
        self._extractors[extractor.name] = extractor

    def get(self, name: str) -> Extractor:
        """Return the extractor registered under `name`."""
        extractor = self._extractors.get(name)
        if extractor is None:
            raise LookupError(f"No extractor named: {name}")
        return extractor

    def names(self) -> tuple[str, ...]:
        """Return registered extractor names in deterministic order."""
        return tuple(self._extractors)


def build_extractor_registry() -> ExtractorRegistry:
    """Build the registry of built-in extractors."""
    registry = ExtractorRegistry()
    registry.register(PythonCallExtractor())
    return registry
