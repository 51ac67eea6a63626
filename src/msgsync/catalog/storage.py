"""In-memory catalog model and the storage protocol it is persisted through."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Protocol

from msgsync.messages.models import CatalogItem, FileRef

_PLURAL_FORMS_RE = re.compile(r"nplurals\s*=\s*(\d+)\s*;\s*plural\s*=\s*(.+?)\s*;?\s*$")


@dataclass(slots=True, frozen=True)
class PluralRule:
    """Plural-Forms descriptor of one locale."""

    nplurals: int = 2
    plural: str = "n == 1 ? 0 : 1"

    def header(self) -> str:
        """Return the Plural-Forms header value."""
        return f"nplurals={self.nplurals}; plural={self.plural};"


DEFAULT_PLURAL_RULE = PluralRule()


def parse_plural_forms(value: str | None) -> PluralRule:
    """Parse a Plural-Forms header, falling back to the default rule."""
    if not value:
        return DEFAULT_PLURAL_RULE
    matched = _PLURAL_FORMS_RE.search(value.strip())
    if matched is None:
        return DEFAULT_PLURAL_RULE
    return PluralRule(nplurals=int(matched.group(1)), plural=matched.group(2))


@dataclass(slots=True)
class Catalog:
    """Items of one locale keyed by message key, in stored order."""

    items: dict[str, CatalogItem] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    plural_rule: PluralRule = DEFAULT_PLURAL_RULE

    @classmethod
    def from_items(
        cls,
        items: list[CatalogItem],
        headers: dict[str, str] | None = None,
        plural_rule: PluralRule | None = None,
    ) -> Catalog:
        """Build a catalog keyed by each item's key."""
        return cls(
            items={item.key: item for item in items},
            headers=dict(headers or {}),
            plural_rule=plural_rule or DEFAULT_PLURAL_RULE,
        )

    def snapshot(self) -> str:
        """Serialize the item list for change detection."""
        return json.dumps([item.to_dict() for item in self.items.values()], sort_keys=True)

    def remove_obsolete(self) -> list[str]:
        """Drop obsolete items and return their keys."""
        removed = [key for key, item in self.items.items() if item.is_obsolete]
        for key in removed:
            del self.items[key]
        return removed


@dataclass(slots=True, frozen=True)
class CatalogStatus:
    """Translation progress counters of one catalog."""

    total: int
    untranslated: int
    obsolete: int


def catalog_status(catalog: Catalog) -> CatalogStatus:
    """Count total, untranslated and obsolete items."""
    items = list(catalog.items.values())
    return CatalogStatus(
        total=len(items),
        untranslated=sum(1 for item in items if not (item.msgstr and item.msgstr[0])),
        obsolete=sum(1 for item in items if item.is_obsolete),
    )


@dataclass(slots=True, frozen=True)
class CatalogStorageError(Exception):
    """Raised when a persisted catalog exists but cannot be read or written."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"Catalog storage failure at {self.path}: {self.reason}"


class CatalogStorage(Protocol):
    """Persistence of per-locale catalogs sharing one location."""

    @property
    def key(self) -> str:
        """Identity of the storage location; equal keys share state."""
        ...

    @property
    def files(self) -> tuple[str, ...]:
        """Files controlled by this storage."""
        ...

    def load(self, locale: str) -> Catalog | None:
        """Return the stored catalog, or None when none exists yet."""
        ...

    def save(self, locale: str, catalog: Catalog) -> None:
        """Persist the catalog of a locale."""
        ...


class MemoryCatalogStorage:
    """Storage keeping serialized snapshots in memory."""

    def __init__(self, key: str = "memory") -> None:
        self._key = key
        self.saved: dict[str, Catalog] = {}
        self.save_count = 0

    @property
    def key(self) -> str:
        """Return the storage identity."""
        return self._key

    @property
    def files(self) -> tuple[str, ...]:
        """In-memory storage controls no files."""
        return ()

    def load(self, locale: str) -> Catalog | None:
        """Return a copy of the last saved catalog."""
        stored = self.saved.get(locale)
        if stored is None:
            return None
        return _copy_catalog(stored)

    def save(self, locale: str, catalog: Catalog) -> None:
        """Keep a copy of the catalog."""
        self.saved[locale] = _copy_catalog(catalog)
        self.save_count += 1


def _copy_catalog(catalog: Catalog) -> Catalog:
    items = [item_from_dict(item.to_dict()) for item in catalog.items.values()]
    return Catalog.from_items(items, catalog.headers, catalog.plural_rule)


def item_from_dict(payload: dict[str, object]) -> CatalogItem:
    """Rebuild an item from `CatalogItem.to_dict` output."""
    references = [
        FileRef(
            file=str(ref["file"]),
            occurrences=[tuple(occ) for occ in ref["occurrences"]],
            comments=list(ref.get("comments", [])),
        )
        for ref in payload.get("references", [])
    ]
    context = payload.get("context")
    return CatalogItem(
        msgid=list(payload["msgid"]),
        msgstr=list(payload.get("msgstr", [])),
        context=context if isinstance(context, str) else None,
        references=references,
        comments=list(payload.get("comments", [])),
        url_adapters=list(payload.get("url_adapters", [])),
        flags=list(payload.get("flags", [])),
        extracted=list(payload.get("extracted", [])),
    )
