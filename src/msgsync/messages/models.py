"""Extracted message and catalog item models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Scope(str, Enum):
    """Where a message was found in its source file."""

    SCRIPT = "script"
    MARKUP = "markup"
    ATTRIBUTE = "attribute"
    URL = "url"


def _normalize_lines(text: str) -> str:
    return "\n".join(line.strip() for line in text.split("\n"))


@dataclass(slots=True, frozen=True)
class Message:
    """Unit of extractable source text, before translation."""

    text: tuple[str, ...]
    scope: Scope = Scope.SCRIPT
    context: str | None = None
    placeholders: tuple[str, ...] = ()
    comments: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        forms = (self.text,) if isinstance(self.text, str) else tuple(self.text)
        normalized = tuple(_normalize_lines(form) for form in forms if form is not None)
        if not normalized or len(normalized) > 2:
            raise ValueError("Message text must have one or two forms.")
        object.__setattr__(self, "text", normalized)
        object.__setattr__(self, "scope", Scope(self.scope))

    @property
    def plural(self) -> bool:
        """Return True for singular/plural source forms."""
        return len(self.text) == 2

    @property
    def key(self) -> str:
        """Return the catalog key shared by equal messages."""
        return item_key(self.text, self.context)


def item_key(msgid: tuple[str, ...] | list[str], context: str | None) -> str:
    """Join the first two source forms and the context into a trimmed key."""
    joined = "\n".join(_normalize_lines(form) for form in msgid[:2])
    return f"{joined}\n{context or ''}".strip()


@dataclass(slots=True)
class FileRef:
    """Occurrences and developer comments of one catalog item in one source file."""

    file: str
    occurrences: list[tuple[str, ...]] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable form."""
        return {
            "file": self.file,
            "occurrences": [list(item) for item in self.occurrences],
            "comments": list(self.comments),
        }


@dataclass(slots=True)
class CatalogItem:
    """Persisted translation state of one message for one locale."""

    msgid: list[str]
    msgstr: list[str] = field(default_factory=list)
    context: str | None = None
    references: list[FileRef] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    url_adapters: list[str] = field(default_factory=list)
    flags: list[str] = field(default_factory=list)
    extracted: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        """Return the catalog key of this item."""
        return item_key(self.msgid, self.context)

    @property
    def plural(self) -> bool:
        """Return True when the item has a plural source form."""
        return len(self.msgid) > 1

    @property
    def is_url(self) -> bool:
        """Return True for URL-pattern entries."""
        return bool(self.url_adapters)

    @property
    def is_obsolete(self) -> bool:
        """Return True when no source file or URL adapter uses the item."""
        return not self.references and not self.url_adapters

    @property
    def is_translated(self) -> bool:
        """Return True when every translated form is filled in."""
        return bool(self.msgstr) and all(form for form in self.msgstr)

    def reference_for(self, file: str) -> FileRef | None:
        """Return the reference entry for a file, if present."""
        for ref in self.references:
            if ref.file == file:
                return ref
        return None

    def set_reference(self, ref: FileRef) -> None:
        """Replace the reference entry of `ref.file`, keeping file order."""
        self.references = [item for item in self.references if item.file != ref.file]
        self.references.append(ref)
        self.references.sort(key=lambda item: item.file)

    def drop_reference(self, file: str) -> bool:
        """Remove the reference entry of a file; return True when removed."""
        kept = [ref for ref in self.references if ref.file != file]
        removed = len(kept) != len(self.references)
        self.references = kept
        return removed

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable form used for change detection."""
        return {
            "msgid": list(self.msgid),
            "msgstr": list(self.msgstr),
            "context": self.context,
            "references": [ref.to_dict() for ref in self.references],
            "comments": list(self.comments),
            "url_adapters": list(self.url_adapters),
            "flags": list(self.flags),
            "extracted": list(self.extracted),
        }
