from __future__ import annotations

import json
from pathlib import Path

import pytest

from msgsync.compiler.elements import Text
from msgsync.runtime import Runtime, invalid_marker, missing_marker

POLISH = "n==1 ? 0 : n%10>=2 && n%10<=4 && (n%100<10 || n%100>=20) ? 1 : 2"


def test_render_text_and_placeholders() -> None:
    runtime = Runtime(["Hello", ["Bye ", 0, "!"]])

    assert len(runtime) == 2
    assert runtime.t(0) == "Hello"
    assert runtime.t(1, ["Ann"]) == "Bye Ann!"


def test_tags_render_through_callback() -> None:
    runtime = Runtime([["Click ", [0, "here"], " or ", [1]]])

    rendered = runtime.t(0, tag=lambda index, inner: f"<{index}:{inner}>")

    assert rendered == "Click <0:here> or <1:>"


def test_missing_entries_render_not_found_marker() -> None:
    runtime = Runtime(["Hello", None])

    assert runtime.t(1) == "[i18n-404:1]"
    assert runtime.t(7) == missing_marker(7)
    assert runtime.cx(-1) == Text("[i18n-404:-1]")


def test_undecodable_entries_render_invalid_marker() -> None:
    runtime = Runtime([{"bad": 1}, ["x", [-3]]])

    assert runtime.t(0) == '[i18n-400:0({"bad": 1})]'
    assert runtime.t(1) == invalid_marker(1, ["x", [-3]])


def test_plural_forms_are_decoded_on_request() -> None:
    runtime = Runtime([["{0} file", "{0} files"], ["bad", 1]])

    assert runtime.tp(0) == ("{0} file", "{0} files")
    assert runtime.tp(1) == ()
    assert runtime.tp(5) == ()


def test_plural_index_evaluates_c_expression() -> None:
    assert [Runtime().plural_index(n) for n in (0, 1, 2)] == [1, 0, 1]
    polish = Runtime(plural=POLISH)
    assert [polish.plural_index(n) for n in (1, 3, 5, 22, 112)] == [0, 1, 2, 1, 2]


def test_load_from_artifact_file(tmp_path: Path) -> None:
    path = tmp_path / "main.main.es.json"
    path.write_text(json.dumps({"items": ["Hola"], "plural": None}), encoding="utf-8")

    assert Runtime.from_file(path).t(0) == "Hola"


def test_invalid_payload_raises() -> None:
    with pytest.raises(ValueError):
        Runtime.from_payload({"items": "nope"})
    with pytest.raises(ValueError):
        Runtime.from_payload({"items": [], "plural": 3})
