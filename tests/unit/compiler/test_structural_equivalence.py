from __future__ import annotations

import pytest

from msgsync.compiler.elements import Text, element_from_json
from msgsync.compiler.equivalence import is_equivalent
from msgsync.compiler.placeholders import compile_text


def _eq(source: object, translation: object) -> bool:
    return is_equivalent(element_from_json(source), element_from_json(translation))


def test_same_placeholders_with_different_text_are_equivalent() -> None:
    assert _eq(["orig ", 0], ["transl ", 0]) is True


def test_dropping_all_text_is_not_equivalent() -> None:
    assert _eq(["orig ", 0], [0]) is False


def test_text_only_compares_by_kind() -> None:
    assert is_equivalent(Text("Hello"), Text("Hola")) is True
    assert is_equivalent(Text("Hello"), compile_text("Hola {0}")) is False
    assert is_equivalent(compile_text("Hello {0}"), Text("Hola")) is False


def test_reordered_placeholders_are_equivalent() -> None:
    assert _eq(["a ", 0, " b ", 1], [1, " x ", 0]) is True


def test_missing_placeholder_is_not_equivalent() -> None:
    assert _eq(["a ", 0, 1], ["a ", 0, 0]) is False


def test_extra_placeholder_changes_cardinality() -> None:
    assert _eq(["a ", 0], ["a ", 0, " ", 0]) is False


def test_spans_match_by_tag_and_recursive_content() -> None:
    assert _eq(["a ", [0, "b"]], ["x ", [0, "y"]]) is True
    assert _eq(["a ", [0, "b"]], ["x ", [1, "y"]]) is False
    assert _eq(["a ", [0, "b ", 0]], ["x ", [0, "y"]]) is False


def test_compiled_translation_with_moved_span_is_equivalent() -> None:
    source = compile_text("Read <0>the docs</0> about {0}")
    translation = compile_text("Lee sobre {0} en <0>la documentación</0>")

    assert is_equivalent(source, translation) is True


@pytest.mark.parametrize(
    "shape",
    [
        "plain",
        ["a ", 0],
        [0, " and ", 1],
        ["a ", [0, "b"]],
        ["a ", [0, "b ", [1, "c ", 0]], " ", 1],
        [[0, [1, [2, "deep"]]], " tail"],
    ],
)
def test_every_shape_is_equivalent_to_itself(shape: object) -> None:
    assert _eq(shape, shape) is True


def test_extra_non_text_parts_are_rejected_when_both_have_text() -> None:
    assert _eq(["a ", 0], ["b ", 0, [0, "c"]]) is False
    assert _eq(["a ", 0], ["b ", 0, " ", 1]) is False
    assert _eq(["a ", [0, "b"]], ["x ", [0, "y"], [0, "z"]]) is False
