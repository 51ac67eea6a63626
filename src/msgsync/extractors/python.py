"""Python AST extractor for gettext-style calls."""

from __future__ import annotations

import ast
import logging

from msgsync.extractors.base import ExtractorError, normalize_comment
from msgsync.messages.models import Message, Scope

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "# i18n:"

# name -> (context position, singular position, plural position)
_KEYWORDS: dict[str, tuple[int | None, int, int | None]] = {
    "_": (None, 0, None),
    "gettext": (None, 0, None),
    "ngettext": (None, 0, 1),
    "pgettext": (0, 1, None),
    "npgettext": (0, 1, 2),
    "_url": (None, 0, None),
}
_SCOPES: dict[str, Scope] = {"_url": Scope.URL}


class PythonCallExtractor:
    """Extracts string literals passed to gettext-style calls and `_url`.

    A call chained with `.format(...)` records the format arguments as the
    placeholders of that occurrence. A `# i18n: ...` comment on the line above
    the call is kept as a developer comment. `_url("/items/{0}")` marks a link
    path, localized through the configured URL patterns.
    """

    name = "python"

    def supports_path(self, path: str) -> bool:
        """Return True when path is a Python source file."""
        return path.lower().endswith(".py")

    def extract(self, path: str, text: str) -> list[Message]:
        """Parse source and collect translatable calls in source order."""
        try:
            tree = ast.parse(text, filename=path)
        except (SyntaxError, ValueError) as exc:
            raise ExtractorError(path=path, reason=str(exc)) from exc
        collector = _CallCollector(text.splitlines())
        collector.visit(tree)
        collector.found.sort(key=lambda item: item[0])
        if collector.skipped:
            logger.debug("%s: skipped %d non-literal calls", path, collector.skipped)
        return [message for _, message in collector.found]


class _CallCollector(ast.NodeVisitor):
    """Collect translatable calls with their formatting arguments."""

    def __init__(self, lines: list[str]) -> None:
        self._lines = lines
        self._handled: set[int] = set()
        self.found: list[tuple[tuple[int, int], Message]] = []
        self.skipped = 0

    def visit_Call(self, node: ast.Call) -> None:  # noqa: N802
        func = node.func
        if (
            isinstance(func, ast.Attribute)
            and func.attr == "format"
            and isinstance(func.value, ast.Call)
            and _call_name(func.value) in _KEYWORDS
        ):
            placeholders = tuple(ast.unparse(arg) for arg in node.args)
            placeholders += tuple(
                f"{keyword.arg}={ast.unparse(keyword.value)}"
                for keyword in node.keywords
                if keyword.arg is not None
            )
            self._record(func.value, placeholders)
        elif id(node) not in self._handled and _call_name(node) in _KEYWORDS:
            self._record(node, ())
        self.generic_visit(node)

    def _record(self, node: ast.Call, placeholders: tuple[str, ...]) -> None:
        self._handled.add(id(node))
        name = _call_name(node) or ""
        context_pos, singular_pos, plural_pos = _KEYWORDS[name]
        context = _literal_arg(node, context_pos)
        singular = _literal_arg(node, singular_pos)
        plural = _literal_arg(node, plural_pos)
        if singular is None or (context_pos is not None and context is None):
            self.skipped += 1
            return
        if plural_pos is not None and plural is None:
            self.skipped += 1
            return
        text = (singular, plural) if plural is not None else (singular,)
        self.found.append(
            (
                (node.lineno, node.col_offset),
                Message(
                    text=text,
                    scope=_SCOPES.get(name, Scope.SCRIPT),
                    context=context,
                    placeholders=placeholders,
                    comments=self._comments_above(node.lineno),
                ),
            )
        )

    def _comments_above(self, lineno: int) -> tuple[str, ...]:
        index = lineno - 2
        if index < 0 or index >= len(self._lines):
            return ()
        line = self._lines[index].strip()
        if not line.startswith(COMMENT_PREFIX):
            return ()
        comment = normalize_comment(line[len(COMMENT_PREFIX) :])
        return (comment,) if comment else ()


def _call_name(node: ast.Call) -> str | None:
    if isinstance(node.func, ast.Name):
        return node.func.id
    if isinstance(node.func, ast.Attribute):
        return node.func.attr
    return None


def _literal_arg(node: ast.Call, position: int | None) -> str | None:
    if position is None or position >= len(node.args):
        return None
    arg = node.args[position]
    if isinstance(arg, ast.Constant) and isinstance(arg.value, str):
        return arg.value
    return None
