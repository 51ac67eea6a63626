"""Path pattern parsing, matching and filling.

Syntax:

- `:name` matches one path segment,
- `*name` matches one or more segments,
- `{...}` marks an optional group,
- `\\` escapes the next character.

A trailing `/` on the matched path is tolerated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

_NAME_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_SPECIAL_CHARS = ":*{}\\"


@dataclass(slots=True, frozen=True)
class TextToken:
    value: str


@dataclass(slots=True, frozen=True)
class ParamToken:
    name: str


@dataclass(slots=True, frozen=True)
class WildcardToken:
    name: str


@dataclass(slots=True, frozen=True)
class GroupToken:
    tokens: tuple[Token, ...]


Token = Union[TextToken, ParamToken, WildcardToken, GroupToken]
KeyToken = Union[ParamToken, WildcardToken]


class PatternSyntaxError(ValueError):
    """Raised on malformed path patterns."""


def parse(pattern: str) -> tuple[Token, ...]:
    """Tokenize a path pattern."""
    tokens, index = _parse(pattern, 0, nested=False)
    if index != len(pattern):
        raise PatternSyntaxError(f"Unexpected '}}' at {index} in {pattern!r}")
    return tokens


def _parse(pattern: str, start: int, nested: bool) -> tuple[tuple[Token, ...], int]:
    tokens: list[Token] = []
    buffer: list[str] = []

    def flush() -> None:
        if buffer:
            tokens.append(TextToken("".join(buffer)))
            buffer.clear()

    index = start
    while index < len(pattern):
        char = pattern[index]
        if char == "\\":
            if index + 1 >= len(pattern):
                raise PatternSyntaxError(f"Dangling escape in {pattern!r}")
            buffer.append(pattern[index + 1])
            index += 2
            continue
        if char in ":*":
            matched = _NAME_RE.match(pattern, index + 1)
            if matched is None:
                raise PatternSyntaxError(f"Missing parameter name at {index} in {pattern!r}")
            flush()
            name = matched.group(0)
            tokens.append(ParamToken(name) if char == ":" else WildcardToken(name))
            index = matched.end()
            continue
        if char == "{":
            flush()
            group, index = _parse(pattern, index + 1, nested=True)
            if index >= len(pattern) or pattern[index] != "}":
                raise PatternSyntaxError(f"Unterminated group in {pattern!r}")
            tokens.append(GroupToken(group))
            index += 1
            continue
        if char == "}":
            if nested:
                break
            raise PatternSyntaxError(f"Unexpected '}}' at {index} in {pattern!r}")
        buffer.append(char)
        index += 1
    flush()
    return tuple(tokens), index


def keys(tokens: tuple[Token, ...]) -> tuple[KeyToken, ...]:
    """Return parameter tokens in order of appearance."""
    output: list[KeyToken] = []
    for token in tokens:
        if isinstance(token, GroupToken):
            output.extend(keys(token.tokens))
        elif isinstance(token, (ParamToken, WildcardToken)):
            output.append(token)
    return tuple(output)


def stringify(tokens: tuple[Token, ...]) -> str:
    """Rebuild pattern source from tokens."""
    output: list[str] = []
    for token in tokens:
        match token:
            case TextToken(value=value):
                output.append("".join(f"\\{c}" if c in _SPECIAL_CHARS else c for c in value))
            case ParamToken(name=name):
                output.append(f":{name}")
            case WildcardToken(name=name):
                output.append(f"*{name}")
            case GroupToken(tokens=inner):
                output.append("{" + stringify(inner) + "}")
    return "".join(output)


def _regex(tokens: tuple[Token, ...]) -> str:
    output: list[str] = []
    for token in tokens:
        match token:
            case TextToken(value=value):
                output.append(re.escape(value))
            case ParamToken():
                output.append("([^/]+)")
            case WildcardToken():
                output.append("(.+?)")
            case GroupToken(tokens=inner):
                output.append(f"(?:{_regex(inner)})?")
    return "".join(output)


def fill_tokens(tokens: tuple[Token, ...], params: dict[str, str]) -> str:
    """Substitute params; optional groups with a missing param are dropped."""
    output: list[str] = []
    for token in tokens:
        match token:
            case TextToken(value=value):
                output.append(value)
            case ParamToken(name=name) | WildcardToken(name=name):
                if name not in params:
                    raise KeyError(name)
                output.append(params[name])
            case GroupToken(tokens=inner):
                try:
                    output.append(fill_tokens(inner, params))
                except KeyError:
                    continue
    return "".join(output)


class PathPattern:
    """Compiled path pattern."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.tokens = parse(source)
        self.keys = keys(self.tokens)
        self._regex = re.compile(f"^{_regex(self.tokens)}/?$", re.DOTALL)

    def match(self, path: str) -> dict[str, str] | None:
        """Return captured params, or None when the path does not match."""
        matched = self._regex.match(path)
        if matched is None:
            return None
        params: dict[str, str] = {}
        for key, value in zip(self.keys, matched.groups()):
            if value is not None:
                params[key.name] = value
        return params

    def fill(self, params: dict[str, str]) -> str:
        """Build a path from params."""
        return fill(self.source, params)

    def __repr__(self) -> str:
        return f"PathPattern({self.source!r})"


def fill(pattern: str, params: dict[str, str]) -> str:
    """Build a path from a pattern and params."""
    try:
        return fill_tokens(parse(pattern), params)
    except KeyError as exc:
        raise ValueError(f"Missing parameter {exc.args[0]!r} for pattern {pattern!r}") from exc
