from __future__ import annotations

import pytest

from msgsync.url.matcher import URLManifestItem, URLMatch, URLMatcher, locale_from_path

MANIFEST = [["/"], ["/path", ["/path", "/ruta"]]]


def test_localized_path_maps_to_canonical_pattern() -> None:
    matcher = URLMatcher(MANIFEST, ["en", "es"])

    assert matcher.match("/ruta", "es") == URLMatch(
        path="/path",
        params={},
        alt_patterns={"en": "/path", "es": "/ruta"},
    )


def test_localized_path_does_not_match_other_locale() -> None:
    matcher = URLMatcher(MANIFEST, ["en", "es"])

    assert matcher.match("/ruta", "en") is None
    assert matcher.match("/path", "en") is not None


def test_entries_without_localized_patterns_serve_every_locale() -> None:
    matcher = URLMatcher(MANIFEST, ["en", "es"])

    match = matcher.match("/", "es")

    assert match is not None
    assert match.path == "/"
    assert match.alt_patterns == {"en": "/", "es": "/"}


def test_missing_locale_never_matches() -> None:
    assert URLMatcher(MANIFEST, ["en", "es"]).match("/", None) is None


def test_parameters_are_substituted_into_canonical_pattern() -> None:
    matcher = URLMatcher(
        [["/items/:id/*rest", ["/items/:id/*rest", "/elementos/:id/*rest"]]], ["en", "es"]
    )

    match = matcher.match("/elementos/5/fotos/2", "es")

    assert match is not None
    assert match.path == "/items/5/fotos/2"
    assert match.params == {"id": "5", "rest": "fotos/2"}


def test_first_matching_entry_wins() -> None:
    matcher = URLMatcher([["/items/new"], ["/items/:id"]], ["en"])

    match = matcher.match("/items/new", "en")

    assert match is not None
    assert match.params == {}


def test_manifest_items_round_trip_and_validate() -> None:
    item = URLManifestItem.from_json(["/path", ["/path", "/ruta"]])

    assert item == URLManifestItem(pattern="/path", localized=("/path", "/ruta"))
    assert item.to_json() == ["/path", ["/path", "/ruta"]]
    assert URLManifestItem.from_json(["/"]).to_json() == ["/"]
    with pytest.raises(ValueError):
        URLManifestItem.from_json([])
    with pytest.raises(ValueError):
        URLManifestItem.from_json(["/path", [1]])


def test_locale_from_path_reads_leading_segment() -> None:
    assert locale_from_path("/es/items", ["en", "es"]) == "es"
    assert locale_from_path("/es", ["en", "es"]) == "es"
    assert locale_from_path("/items", ["en", "es"]) is None
