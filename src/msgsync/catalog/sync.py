"""Merging extracted messages into shared catalogs and compiling them."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from msgsync.catalog.discovery import FileMatcher, discover_files
from msgsync.catalog.output import CompiledWriter
from msgsync.catalog.pofile import PoCatalogStorage
from msgsync.catalog.state import (
    Compiled,
    CompiledEntry,
    GranularStates,
    SharedState,
    SharedStates,
)
from msgsync.catalog.storage import Catalog, CatalogStatus, CatalogStorage, catalog_status
from msgsync.compiler.elements import CompiledElement, PluralForms, Text
from msgsync.compiler.equivalence import is_equivalent
from msgsync.compiler.placeholders import PlaceholderSyntaxError, compile_text, compile_translation
from msgsync.config import AgentConfig, ProjectConfig
from msgsync.extractors.base import Extractor
from msgsync.extractors.registry import ExtractorRegistry, build_extractor_registry
from msgsync.logging.audit import ExtractionEvent, JsonlAuditLogger, utc_timestamp
from msgsync.messages.models import CatalogItem, FileRef, Message, Scope
from msgsync.url.catalog import (
    build_manifest,
    compile_url,
    init_url_patterns,
    localize_default,
    url_pattern_key,
)
from msgsync.url.patterns import PathPattern

logger = logging.getLogger(__name__)

FUZZY_FLAG = "fuzzy"
# marks a fuzzy flag set by the structure check rather than by a translator
AUTO_FUZZY_FLAG = "msgsync-fuzzy"


@dataclass(slots=True, frozen=True)
class ScanResult:
    """Outcome of one extraction pass."""

    files: int
    messages: int
    written_locales: tuple[str, ...]
    removed_items: int


@dataclass(slots=True)
class AgentOptions:
    """Behavior switches of an extraction agent."""

    granular: bool = False
    url_patterns: tuple[str, ...] = ()
    localize_urls: bool = False
    audit_logger: JsonlAuditLogger | None = None
    writer: CompiledWriter | None = None


class ExtractionAgent:
    """Extracts one file set into catalogs it may share with sibling agents."""

    def __init__(
        self,
        key: str,
        root: Path,
        locales: Sequence[str],
        source_locale: str,
        storage: CatalogStorage,
        matcher: FileMatcher,
        extractor: Extractor,
        shared_states: SharedStates,
        options: AgentOptions | None = None,
    ) -> None:
        self.key = key
        self.root = root.resolve()
        self.source_locale = source_locale
        all_locales = list(locales)
        if source_locale not in all_locales:
            all_locales.append(source_locale)
        self.locales = tuple(all_locales)
        self.matcher = matcher
        self.extractor = extractor
        self.options = options or AgentOptions()
        self._url_patterns = tuple(PathPattern(pattern) for pattern in self.options.url_patterns)
        self.state: SharedState = shared_states.get_or_add(storage, key, source_locale, matcher)
        self.granular = GranularStates()
        self._written: dict[tuple[str, str], list[object]] = {}

    @property
    def is_owner(self) -> bool:
        """Return True when this agent owns the shared storage."""
        return self.state.is_owner(self.key)

    @property
    def storage(self) -> CatalogStorage:
        """Return the shared catalog storage."""
        return self.state.storage

    def _ordered_locales(self) -> tuple[str, ...]:
        others = tuple(locale for locale in self.locales if locale != self.source_locale)
        return (self.source_locale, *others)

    def load(self) -> None:
        """Load catalogs (owner only), reseed indices and compile every locale."""
        if self.is_owner:
            for locale in self.locales:
                catalog = self.storage.load(locale)
                if catalog is None:
                    logger.warning("%s: no catalog for %s yet, starting empty", self.key, locale)
                    catalog = Catalog()
                self.state.catalogs[locale] = catalog
            source_catalog = self.state.catalog(self.source_locale)
            self.state.index_tracker.reload(_index_keys(source_catalog))
        if self.options.url_patterns or self._has_url_items():
            for locale in self.locales:
                catalog = self.state.catalog(locale)
                if init_url_patterns(
                    self.key, self.options.url_patterns, locale, self.source_locale, catalog
                ):
                    self.storage.save(locale, catalog)
        for locale in self.locales:
            catalog = self.state.catalog(locale)
            status = catalog_status(catalog)
            logger.info(
                "%s (%s): total: %d, untranslated: %d",
                self.key,
                locale,
                status.total,
                status.untranslated,
            )
        self.compile_all()

    def _has_url_items(self) -> bool:
        return any(
            self.key in item.url_adapters
            for catalog in self.state.catalogs.values()
            for item in catalog.items.values()
        )

    def extract_file(self, filename: str, content: str) -> list[Message]:
        """Extract one file and merge its messages into every locale."""
        messages = self.extractor.extract(filename, content)
        self._merge_file(filename, messages)
        return messages

    async def _read_and_extract(self, filename: str) -> list[Message]:
        path = self.root / filename
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return await asyncio.to_thread(self.extractor.extract, filename, content)

    async def scan(
        self, files: Sequence[str], clean: bool = False, sequential: bool = False
    ) -> ScanResult:
        """Run one extraction pass over `files` (project-relative paths)."""
        started = time.perf_counter()
        snapshots = {locale: self.state.catalog(locale).snapshot() for locale in self.locales}
        if clean:
            self._clean_references()
        message_count = 0
        if sequential:
            for filename in files:
                messages = await self._read_and_extract(filename)
                self._merge_file(filename, messages)
                message_count += len(messages)
        else:
            results = await asyncio.gather(*(self._read_and_extract(name) for name in files))
            for filename, messages in zip(files, results):
                self._merge_file(filename, messages)
                message_count += len(messages)
        removed = 0
        if clean:
            for locale in self.locales:
                removed_keys = self.state.catalog(locale).remove_obsolete()
                if removed_keys:
                    logger.info("%s (%s): removed %d obsolete items", self.key, locale, len(removed_keys))
                removed += len(removed_keys)
        written: list[str] = []
        for locale in self.locales:
            catalog = self.state.catalog(locale)
            if catalog.snapshot() == snapshots[locale]:
                continue
            self.storage.save(locale, catalog)
            written.append(locale)
        self.compile_all()
        result = ScanResult(
            files=len(files),
            messages=message_count,
            written_locales=tuple(written),
            removed_items=removed,
        )
        self._audit(result, clean, sequential, time.perf_counter() - started)
        return result

    def discover(self) -> list[str]:
        """Return the project files this agent covers."""
        return discover_files(self.root, self.matcher)

    def _audit(self, result: ScanResult, clean: bool, sequential: bool, seconds: float) -> None:
        audit_logger = self.options.audit_logger
        if audit_logger is None:
            return
        audit_logger.append(
            ExtractionEvent(
                timestamp=utc_timestamp(),
                agent=self.key,
                locales=len(self.locales),
                files=result.files,
                clean=clean,
                sequential=sequential,
                written_locales=result.written_locales,
                removed_items=result.removed_items,
                duration_ms=round(seconds * 1000, 3),
            )
        )

    def _should_strip(self, filename: str) -> bool:
        if self.matcher.matches(filename):
            return True
        if not self.is_owner:
            return False
        return not any(m.matches(filename) for m in self.state.other_file_matchers.values())

    def _clean_references(self) -> None:
        for catalog in self.state.catalogs.values():
            for item in catalog.items.values():
                item.references = [ref for ref in item.references if not self._should_strip(ref.file)]

    def _merge_file(self, filename: str, messages: Sequence[Message]) -> None:
        if messages:
            logger.debug("%s: %d messages from %s", self.key, len(messages), filename)
        else:
            logger.debug("%s: no messages from %s", self.key, filename)
        kept: list[Message] = []
        for message in messages:
            if message.scope is Scope.URL and self._url_pattern(message.text[0]) is None:
                logger.debug(
                    "%s: no URL pattern matches %r in %s", self.key, message.text[0], filename
                )
                continue
            kept.append(message)
        if self.options.granular:
            granular = self.granular.by_file_create(filename, self.locales)
            for message in kept:
                granular.index_tracker.get(message.key)
        for message in kept:
            self.state.index_tracker.get(message.key)
        for locale in self._ordered_locales():
            self._merge_locale(locale, filename, kept)

    def _url_pattern(self, url: str) -> PathPattern | None:
        if any(char.isspace() for char in url):
            return None
        for pattern in self._url_patterns:
            if pattern.match(url) is not None:
                return pattern
        return None

    def _merge_locale(self, locale: str, filename: str, messages: Sequence[Message]) -> None:
        catalog = self.state.catalog(locale)
        nplurals = catalog.plural_rule.nplurals
        refs: dict[str, FileRef] = {}
        for message in messages:
            if message.scope is Scope.URL:
                self._merge_url(catalog, refs, filename, message)
                continue
            key = message.key
            item = catalog.items.get(key)
            if item is None:
                item = CatalogItem(
                    msgid=list(message.text),
                    msgstr=[""] * nplurals if message.plural else [""],
                    context=message.context,
                )
                catalog.items[key] = item
            ref = refs.setdefault(key, FileRef(file=filename))
            ref.occurrences.append(message.placeholders)
            ref.comments.extend(
                comment for comment in message.comments if comment not in ref.comments
            )
            if locale == self.source_locale:
                if item.msgstr != list(message.text):
                    item.msgstr = list(message.text)
            else:
                self._update_fuzzy(item)
        for key, ref in refs.items():
            catalog.items[key].set_reference(ref)
        for key, item in catalog.items.items():
            if key not in refs:
                item.drop_reference(filename)

    def _merge_url(
        self, catalog: Catalog, refs: dict[str, FileRef], filename: str, message: Message
    ) -> None:
        url = message.text[0]
        pattern = self._url_pattern(url)
        if pattern is None:
            return
        key = url_pattern_key(pattern.source)
        if key not in catalog.items:
            logger.warning("%s: URL pattern %r has no catalog item", self.key, pattern.source)
            return
        ref = refs.setdefault(key, FileRef(file=filename))
        ref.occurrences.append(message.placeholders)
        # first word is the URL as written, the rest are its developer comments
        comment = f"{url} {'; '.join(message.comments)}".strip()
        if comment not in ref.comments:
            ref.comments.append(comment)

    @staticmethod
    def _update_fuzzy(item: CatalogItem) -> None:
        if item.plural or not item.msgstr or not item.msgstr[0]:
            return
        source = compile_translation(item.msgid[0], Text(item.msgid[0]))
        try:
            equivalent = is_equivalent(source, compile_text(item.msgstr[0]))
        except PlaceholderSyntaxError:
            equivalent = False
        if equivalent:
            # a fuzzy flag set by a translator stays until they clear it
            if AUTO_FUZZY_FLAG in item.flags:
                item.flags.remove(AUTO_FUZZY_FLAG)
                if FUZZY_FLAG in item.flags:
                    item.flags.remove(FUZZY_FLAG)
            return
        if FUZZY_FLAG in item.flags:
            return
        item.flags.append(FUZZY_FLAG)
        item.flags.append(AUTO_FUZZY_FLAG)

    def compile_all(self) -> None:
        """Compile every locale, source locale first, and publish artifacts."""
        for locale in self._ordered_locales():
            self.compile(locale)
        self._publish_manifest()

    def compile(self, locale: str) -> Compiled:
        """Rebuild the compiled catalog of one locale.

        Items only sibling agents reference keep the entry those agents compiled.
        """
        catalog = self.state.catalog(locale)
        source_compiled = self.state.compiled.get(self.source_locale)
        previous = self.state.compiled.get(locale)
        compiled = Compiled()
        if self.options.granular:
            for granular in self.granular.by_id.values():
                granular.compiled[locale] = Compiled()
        for key, item in catalog.items.items():
            if item.is_url:
                self._compile_urls(locale, item, compiled, source_compiled, previous)
                continue
            if not item.references:
                continue
            index = self.state.index_tracker.get(key)
            own_refs = [ref for ref in item.references if self.matcher.matches(ref.file)]
            if not own_refs:
                _carry(compiled, previous, index)
                continue
            fallback = _fallback(item, source_compiled, index)
            element = _compile_item(item, fallback, is_source=locale == self.source_locale)
            if item.plural:
                compiled.has_plurals = True
            compiled.set(index, element)
            if self.options.granular:
                self._set_granular(locale, key, own_refs, element, item.plural)
        self.state.compiled[locale] = compiled
        self._write(locale, compiled, catalog)
        return compiled

    def _compile_urls(
        self,
        locale: str,
        item: CatalogItem,
        compiled: Compiled,
        source_compiled: Compiled | None,
        previous: Compiled | None,
    ) -> None:
        for ref in item.references:
            own = self.matcher.matches(ref.file)
            for url in _url_keys(ref):
                index = self.state.index_tracker.get(url)
                if not own:
                    _carry(compiled, previous, index)
                    continue
                element = self._compile_url(locale, url, item, source_compiled, index)
                compiled.set(index, element)
                if self.options.granular:
                    self._set_granular(locale, url, [ref], element, False)

    def _compile_url(
        self,
        locale: str,
        url: str,
        item: CatalogItem,
        source_compiled: Compiled | None,
        index: int,
    ) -> CompiledEntry:
        fallback: CompiledElement = Text(url)
        if source_compiled is not None and index < len(source_compiled.items):
            previous_source = source_compiled.items[index]
            if previous_source is not None and not isinstance(previous_source, PluralForms):
                fallback = previous_source
        pattern = self._url_pattern(url)
        translated = item.msgstr[0] if item.msgstr and item.msgstr[0] else item.msgid[0]
        localize = localize_default if self.options.localize_urls else None
        target = url
        if pattern is not None:
            try:
                target = compile_url(url, pattern, translated, locale, localize)
            except ValueError as exc:
                logger.warning("Cannot localize %r for %s: %s", url, locale, exc)
        element = compile_translation(target, fallback)
        if locale == self.source_locale or element is fallback:
            return element
        if not is_equivalent(fallback, element):
            logger.debug("Localized URL %r does not match its source placeholders", target)
            return fallback
        return element

    def _set_granular(
        self,
        locale: str,
        key: str,
        refs: Sequence[FileRef],
        element: CompiledEntry,
        plural: bool,
    ) -> None:
        for ref in refs:
            granular = self.granular.by_file_create(ref.file, self.locales)
            granular_compiled = granular.compiled_for(locale)
            if plural:
                granular_compiled.has_plurals = True
            granular_compiled.set(granular.index_tracker.get(key), element)

    def load_ids(self) -> tuple[str, ...]:
        """Return the load identifiers this agent publishes."""
        if not self.options.granular:
            return (self.state.owner_key,)
        return tuple(sorted(self.granular.by_id))

    def _write(self, locale: str, compiled: Compiled, catalog: Catalog) -> None:
        writer = self.options.writer
        if writer is None:
            return
        plural = catalog.plural_rule.plural
        units: list[tuple[str, Compiled]] = [(self.state.owner_key, compiled)]
        if self.options.granular:
            units = [
                (granular.id, granular.compiled_for(locale))
                for granular in self.granular.by_id.values()
            ]
        for load_id, unit in units:
            payload = unit.to_json()
            if self._written.get((load_id, locale)) == payload:
                continue
            writer.write(load_id, locale, unit, plural)
            self._written[(load_id, locale)] = payload

    def _publish_manifest(self) -> list[list[object]]:
        if not self.options.url_patterns:
            return []
        catalogs = {locale: self.state.catalog(locale) for locale in self.locales}
        localize = localize_default if self.options.localize_urls else None
        manifest = [
            item.to_json() for item in build_manifest(self.options.url_patterns, catalogs, localize)
        ]
        if self.options.writer is not None:
            self.options.writer.write_manifest(self.key, manifest)
        return manifest

    def save(self) -> None:
        """Persist every locale catalog."""
        for locale in self.locales:
            self.storage.save(locale, self.state.catalog(locale))

    def status(self) -> dict[str, CatalogStatus]:
        """Return translation counters per locale."""
        return {locale: catalog_status(self.state.catalog(locale)) for locale in self.locales}


def _fallback(
    item: CatalogItem, source: Compiled | None, index: int
) -> CompiledElement | PluralForms:
    if source is not None and index < len(source.items) and source.items[index] is not None:
        return source.items[index]
    if item.plural:
        return PluralForms(tuple(item.msgid))
    return Text(item.msgid[0])


def _carry(compiled: Compiled, previous: Compiled | None, index: int) -> None:
    if previous is None or index >= len(previous.items):
        return
    element = previous.items[index]
    if element is None:
        return
    if isinstance(element, PluralForms):
        compiled.has_plurals = True
    compiled.set(index, element)


def _url_keys(ref: FileRef) -> list[str]:
    keys: list[str] = []
    for comment in ref.comments:
        url = comment.split(" ", 1)[0]
        if url and url not in keys:
            keys.append(url)
    return keys


def _index_keys(catalog: Catalog) -> list[str]:
    keys: list[str] = []
    for key, item in catalog.items.items():
        if not item.is_url:
            keys.append(key)
            continue
        for ref in item.references:
            keys.extend(_url_keys(ref))
    return keys


def _compile_item(
    item: CatalogItem, fallback: CompiledElement | PluralForms, is_source: bool
) -> CompiledElement | PluralForms:
    if item.plural:
        if "".join(item.msgstr).strip():
            return PluralForms(tuple(item.msgstr))
        return fallback
    if isinstance(fallback, PluralForms):
        fallback = Text(item.msgid[0])
    if not is_source and FUZZY_FLAG in item.flags:
        return fallback
    element = compile_translation(item.msgstr[0] if item.msgstr else "", fallback)
    if is_source or element is fallback:
        return element
    if not is_equivalent(fallback, element):
        logger.debug("Translation of %r does not match its source structure", item.msgid[0])
        return fallback
    return element


def build_agents(
    config: ProjectConfig,
    shared_states: SharedStates | None = None,
    registry: ExtractorRegistry | None = None,
) -> list[ExtractionAgent]:
    """Create one agent per configured agent, sharing states by catalog directory."""
    states = shared_states or SharedStates()
    extractors = registry or build_extractor_registry()
    audit_logger = None
    if config.audit.enabled:
        audit_logger = JsonlAuditLogger(config.data_dir / "audit.jsonl")
    agents: list[ExtractionAgent] = []
    writers: dict[str, CompiledWriter] = {}
    for agent_config in config.agents:
        agents.append(_build_agent(config, agent_config, states, extractors, audit_logger, writers))
    return agents


def _build_agent(
    config: ProjectConfig,
    agent_config: AgentConfig,
    states: SharedStates,
    extractors: ExtractorRegistry,
    audit_logger: JsonlAuditLogger | None,
    writers: dict[str, CompiledWriter],
) -> ExtractionAgent:
    source_locale = config.agent_source_locale(agent_config)
    locales = list(config.locales)
    if source_locale not in locales:
        locales.append(source_locale)
    storage = PoCatalogStorage(
        agent_config.catalog_dir,
        tuple(locales),
        source_locale,
        separate_urls=agent_config.separate_url_catalog,
    )
    existing = states.get(storage.key)
    owner_key = existing.owner_key if existing is not None else agent_config.key
    try:
        extractor = extractors.get(agent_config.extractor)
    except LookupError as exc:
        raise ValueError(
            f"Config field 'agents.{agent_config.key}.extractor' must be one of "
            f"{', '.join(extractors.names())}."
        ) from exc
    writer_key = f"{agent_config.compiled_dir}:{owner_key}"
    writer = writers.get(writer_key)
    if writer is None:
        writer = CompiledWriter(agent_config.compiled_dir, owner_key)
        writers[writer_key] = writer
    return ExtractionAgent(
        key=agent_config.key,
        root=config.project_root,
        locales=locales,
        source_locale=source_locale,
        storage=storage,
        matcher=FileMatcher(include=agent_config.include, ignore=agent_config.ignore),
        extractor=extractor,
        shared_states=states,
        options=AgentOptions(
            granular=agent_config.granular,
            url_patterns=agent_config.url_patterns,
            localize_urls=agent_config.localize_urls,
            audit_logger=audit_logger,
            writer=writer,
        ),
    )
