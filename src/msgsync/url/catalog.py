"""URL patterns as translatable catalog items."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence

from msgsync.catalog.storage import Catalog
from msgsync.compiler.elements import Part, Text
from msgsync.compiler.placeholders import compile_translation
from msgsync.messages.models import CatalogItem, item_key
from msgsync.url.matcher import URLManifestItem
from msgsync.url.patterns import (
    KeyToken,
    ParamToken,
    PathPattern,
    TextToken,
    Token,
    WildcardToken,
    fill,
    fill_tokens,
    keys,
    parse,
    stringify,
)

logger = logging.getLogger(__name__)

URLLocalizer = Callable[[str, str], str]


def localize_default(url: str, locale: str) -> str:
    """Prefix a path with its locale, without a trailing slash."""
    localized = f"/{locale}{url}"
    if localized.endswith("/"):
        return localized[:-1]
    return localized


def pattern_keys(pattern: str) -> tuple[KeyToken, ...]:
    """Return the parameters of a pattern in order."""
    return keys(parse(pattern))


def pattern_to_translate(pattern: str) -> str:
    """Replace each parameter by its positional placeholder."""
    tokens = parse(pattern)
    params = {key.name: f"{{{ordinal}}}" for ordinal, key in enumerate(keys(tokens))}
    return fill_tokens(tokens, params)


def pattern_from_translate(translated: str, parameters: Sequence[KeyToken]) -> str:
    """Turn a translated placeholder string back into a path pattern."""
    compiled = compile_translation(translated, Text(translated))
    if isinstance(compiled, Text):
        return compiled.value
    return stringify(tuple(_parts_to_tokens(compiled.parts, parameters)))


def _parts_to_tokens(parts: tuple[Part, ...], parameters: Sequence[KeyToken]) -> list[Token]:
    tokens: list[Token] = []
    for part in parts:
        if isinstance(part, str):
            tokens.append(TextToken(part))
        elif isinstance(part, int):
            if part >= len(parameters):
                raise ValueError(f"Placeholder {{{part}}} has no matching URL parameter")
            key = parameters[part]
            token = ParamToken(key.name) if isinstance(key, ParamToken) else WildcardToken(key.name)
            tokens.append(token)
        else:
            tokens.extend(_parts_to_tokens(part.parts, parameters))
    return tokens


def _pattern_message(pattern: str) -> tuple[str, str | None]:
    translatable = pattern_to_translate(pattern)
    context = f"original: {pattern}" if translatable != pattern else None
    return translatable, context


def url_pattern_key(pattern: str) -> str:
    """Return the catalog key of a URL pattern item."""
    translatable, context = _pattern_message(pattern)
    return item_key([translatable], context)


def init_url_patterns(
    agent_key: str,
    patterns: Sequence[str],
    locale: str,
    source_locale: str,
    catalog: Catalog,
) -> bool:
    """Ensure each pattern has a URL item owned by the agent; return True on change."""
    changed = False
    wanted: set[str] = set()
    for pattern in patterns:
        translatable, context = _pattern_message(pattern)
        key = item_key([translatable], context)
        wanted.add(key)
        item = catalog.items.get(key)
        if item is None:
            item = CatalogItem(msgid=[translatable], msgstr=[""], context=context)
            catalog.items[key] = item
            changed = True
        if agent_key not in item.url_adapters:
            item.url_adapters.append(agent_key)
            item.url_adapters.sort()
            changed = True
        if locale == source_locale:
            if item.msgstr != [translatable]:
                item.msgstr = [translatable]
                changed = True
        elif not (item.msgstr and item.msgstr[0]) and not any(c.isalpha() for c in translatable):
            item.msgstr = [translatable]
            changed = True
    for key, item in catalog.items.items():
        if key not in wanted and agent_key in item.url_adapters:
            item.url_adapters.remove(agent_key)
            logger.info("URL pattern %r is no longer used by %s", item.msgid[0], agent_key)
            changed = True
    return changed


def build_manifest(
    patterns: Sequence[str],
    catalogs: Mapping[str, Catalog],
    localize: URLLocalizer | None = None,
) -> list[URLManifestItem]:
    """Derive per-locale patterns from the catalogs, in catalog order."""
    manifest: list[URLManifestItem] = []
    for pattern in patterns:
        key = url_pattern_key(pattern)
        parameters = pattern_keys(pattern)
        localized: list[str] = []
        for locale, catalog in catalogs.items():
            locale_pattern = pattern
            item = catalog.items.get(key)
            if item is not None:
                translated = item.msgstr[0] if item.msgstr and item.msgstr[0] else item.msgid[0]
                locale_pattern = pattern_from_translate(translated, parameters)
            if localize is not None:
                locale_pattern = localize(locale_pattern, locale)
            localized.append(locale_pattern)
        manifest.append(URLManifestItem(pattern=pattern, localized=tuple(localized)))
    return manifest


def compile_url(
    url: str,
    pattern: PathPattern,
    translated: str,
    locale: str,
    localize: URLLocalizer | None = None,
) -> str:
    """Rewrite a source URL with the translated form of the pattern it matches.

    `/items/{0}` matching `/items/:id` with the translation `/elementos/{0}`
    becomes `/elementos/{0}`, then `/es/elementos/{0}` when localized.
    """
    target = url
    params = pattern.match(url)
    if params is not None:
        target = fill(pattern_from_translate(translated, pattern.keys), params)
    if localize is not None:
        target = localize(target or url, locale)
    return target
