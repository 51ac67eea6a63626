"""Extractor protocol and shared helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from msgsync.messages.models import Message


@dataclass(slots=True, frozen=True)
class ExtractorError(ValueError):
    """Raised when a source file cannot be parsed for messages."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"Cannot extract messages from {self.path}: {self.reason}"


def normalize_comment(value: str) -> str:
    """Collapse whitespace runs of a developer comment."""
    return " ".join(value.split())


class Extractor(Protocol):
    """Protocol implemented by source extractors."""

    name: str

    def supports_path(self, path: str) -> bool:
        """Return True when the extractor understands a file path."""

    def extract(self, path: str, text: str) -> list[Message]:
        """Return messages in source order."""
