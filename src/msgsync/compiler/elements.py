"""Compiled message element variants and their JSON form."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(slots=True, frozen=True)
class Text:
    """Message without placeholders or tags."""

    value: str
    kind = "text"


@dataclass(slots=True, frozen=True)
class Composite:
    """Tagged span: tag index followed by its payload."""

    tag: int
    parts: tuple[Part, ...] = ()
    kind = "composite"


@dataclass(slots=True, frozen=True)
class Mixed:
    """Top-level sequence of text, placeholder indices and tagged spans."""

    parts: tuple[Part, ...]
    kind = "mixed"

    @property
    def is_flat(self) -> bool:
        """Return True when no tagged span is present."""
        return not any(isinstance(part, Composite) for part in self.parts)


@dataclass(slots=True, frozen=True)
class PluralForms:
    """Raw plural forms of a plural message."""

    forms: tuple[str, ...]
    kind = "plural"


Part = Union[str, int, Composite]
CompiledElement = Union[Text, Mixed, Composite]
JsonElement = Union[str, int, list["JsonElement"]]


class ElementDecodeError(ValueError):
    """Raised when a JSON value is not a valid compiled element."""


def element_to_json(element: CompiledElement | PluralForms) -> JsonElement:
    """Return the compact JSON form of an element."""
    match element:
        case Text(value=value):
            return value
        case Mixed(parts=parts):
            return [_part_to_json(part) for part in parts]
        case Composite(tag=tag, parts=parts):
            return [tag, *(_part_to_json(part) for part in parts)]
        case PluralForms(forms=forms):
            return list(forms)
    raise TypeError(f"Unknown compiled element: {element!r}")


def _part_to_json(part: Part) -> JsonElement:
    if isinstance(part, Composite):
        return element_to_json(part)
    return part


def element_from_json(value: object) -> CompiledElement:
    """Decode a top-level JSON value into `Text` or `Mixed`."""
    if isinstance(value, str):
        return Text(value)
    if isinstance(value, list):
        return Mixed(tuple(_part_from_json(part) for part in value))
    raise ElementDecodeError(f"Expected string or list, got {type(value).__name__}.")


def composite_from_json(value: object) -> Composite:
    """Decode a nested JSON list `[tag, ...payload]`."""
    if not isinstance(value, list) or not value:
        raise ElementDecodeError("Tagged span must be a non-empty list.")
    tag = value[0]
    if isinstance(tag, bool) or not isinstance(tag, int) or tag < 0:
        raise ElementDecodeError("Tagged span must start with a non-negative tag index.")
    return Composite(tag, tuple(_part_from_json(part) for part in value[1:]))


def plural_from_json(value: object) -> PluralForms:
    """Decode the JSON list of plural forms."""
    if not isinstance(value, list) or not all(isinstance(form, str) for form in value):
        raise ElementDecodeError("Plural forms must be a list of strings.")
    return PluralForms(tuple(value))


def _part_from_json(value: object) -> Part:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        raise ElementDecodeError("Booleans are not valid placeholder indices.")
    if isinstance(value, int):
        if value < 0:
            raise ElementDecodeError("Placeholder indices must be non-negative.")
        return value
    return composite_from_json(value)


def element_parts(element: Mixed | Composite) -> tuple[Part, ...]:
    """Return the payload parts of a structured element."""
    match element:
        case Mixed(parts=parts):
            return parts
        case Composite(parts=parts):
            return parts
    raise TypeError(f"Element has no parts: {element!r}")
