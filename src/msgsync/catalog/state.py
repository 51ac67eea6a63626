"""Shared and per-load-unit state of extraction agents."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from msgsync.catalog.discovery import FileMatcher
from msgsync.catalog.storage import Catalog, CatalogStorage
from msgsync.compiler.elements import CompiledElement, PluralForms, element_to_json
from msgsync.messages.identity import IndexTracker

CompiledEntry = CompiledElement | PluralForms | None

_LOAD_ID_RE = re.compile(r"[^a-zA-Z0-9_]+")


@dataclass(slots=True)
class Compiled:
    """Compiled catalog of one locale, indexed by message index."""

    has_plurals: bool = False
    items: list[CompiledEntry] = field(default_factory=list)

    def set(self, index: int, element: CompiledEntry) -> None:
        """Store an element, growing the list with holes as needed."""
        if index >= len(self.items):
            self.items.extend([None] * (index + 1 - len(self.items)))
        self.items[index] = element

    def to_json(self) -> list[object]:
        """Return the JSON form of the items."""
        return [None if item is None else element_to_json(item) for item in self.items]


@dataclass(slots=True, frozen=True)
class SourceLocaleConflictError(Exception):
    """Raised when agents sharing a storage declare different source locales."""

    storage_key: str
    expected: str
    found: str

    def __str__(self) -> str:
        return (
            f"Agents sharing catalogs at {self.storage_key} must use the same source locale: "
            f"'{self.expected}' != '{self.found}'"
        )


@dataclass(slots=True)
class SharedState:
    """State of one catalog storage, shared by every agent writing to it."""

    owner_key: str
    source_locale: str
    storage: CatalogStorage
    other_file_matchers: dict[str, FileMatcher] = field(default_factory=dict)
    catalogs: dict[str, Catalog] = field(default_factory=dict)
    compiled: dict[str, Compiled] = field(default_factory=dict)
    index_tracker: IndexTracker = field(default_factory=IndexTracker)

    def is_owner(self, agent_key: str) -> bool:
        """Return True when the agent created this state."""
        return self.owner_key == agent_key

    def catalog(self, locale: str) -> Catalog:
        """Return the live catalog of a locale, creating an empty one."""
        catalog = self.catalogs.get(locale)
        if catalog is None:
            catalog = Catalog()
            self.catalogs[locale] = catalog
        return catalog


class SharedStates:
    """Registry of shared states keyed by storage key."""

    def __init__(self) -> None:
        self._states: dict[str, SharedState] = {}

    def get_or_add(
        self,
        storage: CatalogStorage,
        agent_key: str,
        source_locale: str,
        matcher: FileMatcher,
    ) -> SharedState:
        """Return the state of `storage`, registering the agent's matcher."""
        state = self._states.get(storage.key)
        if state is None:
            state = SharedState(owner_key=agent_key, source_locale=source_locale, storage=storage)
            self._states[storage.key] = state
            return state
        if state.source_locale != source_locale:
            raise SourceLocaleConflictError(
                storage_key=storage.key,
                expected=state.source_locale,
                found=source_locale,
            )
        if agent_key != state.owner_key:
            state.other_file_matchers[agent_key] = matcher
        return state

    def get(self, storage_key: str) -> SharedState | None:
        """Return a registered state, if any."""
        return self._states.get(storage_key)

    def __len__(self) -> int:
        return len(self._states)


def default_load_id(filename: str) -> str:
    """Derive a load identifier from a file name."""
    return _LOAD_ID_RE.sub("_", filename)


@dataclass(slots=True)
class GranularState:
    """Compiled output partition of one load unit."""

    id: str
    index_tracker: IndexTracker = field(default_factory=IndexTracker)
    compiled: dict[str, Compiled] = field(default_factory=dict)

    def compiled_for(self, locale: str) -> Compiled:
        """Return the compiled catalog of a locale, creating an empty one."""
        compiled = self.compiled.get(locale)
        if compiled is None:
            compiled = Compiled()
            self.compiled[locale] = compiled
        return compiled


class GranularStates:
    """Load-unit states looked up by file and by load identifier."""

    def __init__(self, load_id: Callable[[str], str] = default_load_id) -> None:
        self._load_id = load_id
        self.by_file: dict[str, GranularState] = {}
        self.by_id: dict[str, GranularState] = {}

    def by_file_create(self, filename: str, locales: tuple[str, ...]) -> GranularState:
        """Return the state of a file, sharing it with files of the same load id."""
        state = self.by_file.get(filename)
        if state is not None:
            return state
        load_id = self._load_id(filename)
        state = self.by_id.get(load_id)
        if state is None:
            state = GranularState(id=load_id)
            for locale in locales:
                state.compiled_for(locale)
            self.by_id[load_id] = state
        self.by_file[filename] = state
        return state
