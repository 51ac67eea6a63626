"""Compiler for the placeholder and tag markers used in translation strings.

Grammar embedded in translator-editable text:

- ``{n}`` placeholder reference,
- ``<n>...</n>`` tagged span, compiled recursively,
- ``<n/>`` self-closing tag.

Anything else, including ``<form>`` or ``{name}``, is plain text.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from msgsync.compiler.elements import CompiledElement, Composite, Mixed, Part, Text

logger = logging.getLogger(__name__)

TagRenderer = Callable[[int, str], str]


class _Token(Enum):
    OPEN = "open"
    CLOSE = "close"
    SELF_CLOSE = "selfclose"
    PLACEHOLDER = "placeholder"


@dataclass(slots=True, frozen=True)
class PlaceholderSyntaxError(ValueError):
    """Raised when a closing tag does not match the open one."""

    text: str
    position: int
    tag: int

    def __str__(self) -> str:
        return f"Closing a different tag </{self.tag}> at offset {self.position}."


def _read_token(text: str, start: int) -> tuple[_Token | None, int, int]:
    """Return (token, number, next offset) or (None, -1, start) for plain text."""
    opener = text[start]
    if opener not in "{<":
        return None, -1, start
    index = start + 1
    closing = False
    if opener == "<" and index < len(text) and text[index] == "/":
        closing = True
        index += 1
    digits_start = index
    while index < len(text) and text[index].isdigit() and text[index].isascii():
        index += 1
    if index == digits_start or index >= len(text):
        return None, -1, start
    number = int(text[digits_start:index])
    end_char = text[index]
    if opener == "{":
        if end_char != "}":
            return None, -1, start
        return _Token.PLACEHOLDER, number, index + 1
    if end_char == "/" and not closing and text.startswith(">", index + 1):
        return _Token.SELF_CLOSE, number, index + 2
    if end_char != ">":
        return None, -1, start
    if closing:
        return _Token.CLOSE, number, index + 1
    return _Token.OPEN, number, index + 1


def _compile(text: str, start: int, parent_tag: int | None) -> tuple[list[Part], int]:
    parts: list[Part] = []
    buffer: list[str] = []
    open_tag: int | None = None
    index = start
    while index < len(text):
        token, number, next_index = _read_token(text, index)
        if token is None:
            buffer.append(text[index])
            index += 1
            continue
        if buffer:
            parts.append("".join(buffer))
            buffer = []
        if token is _Token.OPEN:
            open_tag = number
            inner, index = _compile(text, next_index, number)
            parts.append(Composite(number, tuple(inner)))
            continue
        if token is _Token.CLOSE:
            if open_tag is not None:
                if open_tag != number:
                    raise PlaceholderSyntaxError(text=text, position=index, tag=number)
                open_tag = None
            elif number == parent_tag:
                # leave the closing tag for the caller's level
                break
            else:
                raise PlaceholderSyntaxError(text=text, position=index, tag=number)
        elif token is _Token.SELF_CLOSE:
            parts.append(Composite(number))
        else:
            parts.append(number)
        index = next_index
    if buffer:
        parts.append("".join(buffer))
    return parts, index


def compile_text(text: str) -> CompiledElement:
    """Compile marker text, raising `PlaceholderSyntaxError` on mismatched tags."""
    parts, _ = _compile(text, 0, None)
    if len(parts) == 1 and isinstance(parts[0], str):
        return Text(parts[0])
    if not parts:
        return Text("")
    return Mixed(tuple(parts))


def compile_translation(text: str, fallback: CompiledElement) -> CompiledElement:
    """Compile a translation, returning `fallback` when empty or malformed."""
    if not text:
        return fallback
    try:
        return compile_text(text)
    except PlaceholderSyntaxError as err:
        logger.warning("Cannot compile translation %r: %s", text, err)
        return fallback


def render(
    element: CompiledElement,
    args: Sequence[object] = (),
    tag: TagRenderer | None = None,
) -> str:
    """Render an element by substituting args and rendering tagged spans."""
    match element:
        case Text(value=value):
            return value
        case Mixed(parts=parts):
            return _render_parts(parts, args, tag)
        case Composite(tag=index, parts=parts):
            inner = _render_parts(parts, args, tag)
            return tag(index, inner) if tag is not None else inner
    raise TypeError(f"Unknown compiled element: {element!r}")


def _render_parts(parts: tuple[Part, ...], args: Sequence[object], tag: TagRenderer | None) -> str:
    output: list[str] = []
    for part in parts:
        if isinstance(part, str):
            output.append(part)
        elif isinstance(part, int):
            output.append(str(args[part]) if part < len(args) else "")
        else:
            output.append(render(part, args, tag))
    return "".join(output)
