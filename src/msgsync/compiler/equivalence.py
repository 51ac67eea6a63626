"""Structural comparison of a compiled source message and its translation."""

from __future__ import annotations

from msgsync.compiler.elements import CompiledElement, Composite, Part, Text, element_parts


def is_equivalent(source: CompiledElement, translation: CompiledElement) -> bool:
    """Return True when the translation keeps the placeholders and tags of the source.

    Placeholders and tags may be reordered; none may be dropped and the
    number of non-text parts must stay the same.
    """
    if isinstance(source, Text) or isinstance(translation, Text):
        return isinstance(source, Text) and isinstance(translation, Text)
    return _parts_equivalent(element_parts(source), element_parts(translation))


def _parts_equivalent(source: tuple[Part, ...], translation: tuple[Part, ...]) -> bool:
    translated_placeholders = {part for part in translation if _is_placeholder(part)}
    translated_spans = [part for part in translation if isinstance(part, Composite)]
    for part in source:
        if _is_placeholder(part):
            if part not in translated_placeholders:
                return False
        elif isinstance(part, Composite):
            if not any(
                span.tag == part.tag and _parts_equivalent(part.parts, span.parts)
                for span in translated_spans
            ):
                return False
    if _has_text(source) != _has_text(translation):
        return False
    return _structural_count(source) == _structural_count(translation)


def _is_placeholder(part: Part) -> bool:
    return isinstance(part, int) and not isinstance(part, bool)


def _has_text(parts: tuple[Part, ...]) -> bool:
    return any(isinstance(part, str) for part in parts)


def _structural_count(parts: tuple[Part, ...]) -> int:
    return sum(1 for part in parts if not isinstance(part, str))
