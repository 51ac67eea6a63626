from __future__ import annotations

import pytest

from msgsync.url.patterns import (
    ParamToken,
    PathPattern,
    PatternSyntaxError,
    TextToken,
    WildcardToken,
    fill,
    parse,
    stringify,
)


def test_parameters_match_single_segments() -> None:
    pattern = PathPattern("/items/:id")

    assert pattern.match("/items/42") == {"id": "42"}
    assert pattern.match("/items/42/") == {"id": "42"}
    assert pattern.match("/items") is None
    assert pattern.match("/items/4/2") is None


def test_wildcards_match_several_segments() -> None:
    pattern = PathPattern("/docs/*path")

    assert pattern.match("/docs/guide/install") == {"path": "guide/install"}
    assert pattern.match("/docs/") is None


def test_optional_groups_may_be_absent() -> None:
    pattern = PathPattern("/list{/:page}")

    assert pattern.match("/list") == {}
    assert pattern.match("/list/2") == {"page": "2"}


def test_fill_rebuilds_paths_and_drops_unfilled_groups() -> None:
    assert fill("/items/:id", {"id": "7"}) == "/items/7"
    assert fill("/list{/:page}", {}) == "/list"
    assert fill("/list{/:page}", {"page": "3"}) == "/list/3"
    with pytest.raises(ValueError, match="'id'"):
        fill("/items/:id", {})


def test_parse_tokens_and_stringify_escapes_special_characters() -> None:
    tokens = parse("/a\\:b/:id/*rest")

    assert tokens == (TextToken("/a:b/"), ParamToken("id"), TextToken("/"), WildcardToken("rest"))
    assert stringify(tokens) == "/a\\:b/:id/*rest"


@pytest.mark.parametrize("source", ["/items/:", "/a{/b", "/a}", "/a\\"])
def test_malformed_patterns_raise(source: str) -> None:
    with pytest.raises(PatternSyntaxError):
        parse(source)
