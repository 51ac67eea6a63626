"""Locale-aware matching of request paths against a URL manifest."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from msgsync.url.patterns import PathPattern


@dataclass(slots=True, frozen=True)
class URLManifestItem:
    """Canonical pattern and its per-locale patterns, ordered like the locales."""

    pattern: str
    localized: tuple[str, ...] | None = None

    @classmethod
    def from_json(cls, value: object) -> URLManifestItem:
        """Decode `[pattern]` or `[pattern, [localized, ...]]`."""
        if isinstance(value, URLManifestItem):
            return value
        if not isinstance(value, (list, tuple)) or not value or not isinstance(value[0], str):
            raise ValueError(f"Invalid URL manifest item: {value!r}")
        localized = value[1] if len(value) > 1 else None
        if localized is None:
            return cls(pattern=value[0])
        if not isinstance(localized, (list, tuple)) or not all(
            isinstance(item, str) for item in localized
        ):
            raise ValueError(f"Invalid localized patterns: {localized!r}")
        return cls(pattern=value[0], localized=tuple(localized))

    def to_json(self) -> list[object]:
        """Return the JSON form."""
        if self.localized is None:
            return [self.pattern]
        return [self.pattern, list(self.localized)]


@dataclass(slots=True, frozen=True)
class URLMatch:
    """Canonical path of a matched request with alternate locale patterns."""

    path: str
    params: dict[str, str] = field(default_factory=dict)
    alt_patterns: dict[str, str] = field(default_factory=dict)


class URLMatcher:
    """First-match lookup over manifest entries in manifest order."""

    def __init__(self, manifest: Sequence[object], locales: Sequence[str]) -> None:
        self._locales = tuple(locales)
        self._entries: list[tuple[PathPattern, dict[str, PathPattern]]] = []
        for raw in manifest:
            item = URLManifestItem.from_json(raw)
            canonical = PathPattern(item.pattern)
            by_locale: dict[str, PathPattern] = {}
            for ordinal, locale in enumerate(self._locales):
                if item.localized is not None and ordinal < len(item.localized):
                    by_locale[locale] = PathPattern(item.localized[ordinal])
                else:
                    by_locale[locale] = canonical
            self._entries.append((canonical, by_locale))

    @property
    def locales(self) -> tuple[str, ...]:
        """Return the locales of the manifest."""
        return self._locales

    def match(self, path: str, locale: str | None) -> URLMatch | None:
        """Match `path` using each entry's pattern for `locale`."""
        if locale is None:
            return None
        for canonical, by_locale in self._entries:
            pattern = by_locale.get(locale)
            if pattern is None:
                continue
            params = pattern.match(path)
            if params is None:
                continue
            return URLMatch(
                path=canonical.fill(params),
                params=params,
                alt_patterns={loc: item.source for loc, item in by_locale.items()},
            )
        return None


def locale_from_path(path: str, locales: Sequence[str]) -> str | None:
    """Return the leading path segment when it is a known locale."""
    end = path.find("/", 1)
    if end == -1:
        end = len(path)
    candidate = path[1:end]
    if candidate in locales:
        return candidate
    return None
