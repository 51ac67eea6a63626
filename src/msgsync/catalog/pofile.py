"""Gettext `.po` implementation of catalog storage."""

from __future__ import annotations

import json
import logging
import re
from datetime import UTC, datetime
from pathlib import Path

import polib

from msgsync.catalog.storage import Catalog, CatalogStorageError, parse_plural_forms
from msgsync.messages.models import CatalogItem, FileRef

logger = logging.getLogger(__name__)

URL_FLAG_PREFIX = "url:"
# `#. <ordinal>: ["expr", ...]` marks an occurrence; the comment lines after it
# belong to the reference of that occurrence.
_OCCURRENCE_LINE_RE = re.compile(r"^(\d+): (\[.*\])$")
_COMMENT_ESCAPE = "\\"


def _occurrence_line(ordinal: int, placeholders: tuple[str, ...]) -> str:
    return f"{ordinal}: {json.dumps(list(placeholders), ensure_ascii=False)}"


def _parse_occurrence_line(line: str) -> tuple[int, tuple[str, ...]] | None:
    matched = _OCCURRENCE_LINE_RE.match(line)
    if matched is None:
        return None
    try:
        value = json.loads(matched.group(2))
    except ValueError:
        return None
    if not isinstance(value, list) or not all(isinstance(part, str) for part in value):
        return None
    return int(matched.group(1)), tuple(value)


def _escape_comment(comment: str) -> str:
    if comment.startswith(_COMMENT_ESCAPE) or _OCCURRENCE_LINE_RE.match(comment):
        return _COMMENT_ESCAPE + comment
    return comment


def _unescape_comment(line: str) -> str:
    if line.startswith(_COMMENT_ESCAPE):
        return line[len(_COMMENT_ESCAPE) :]
    return line


def item_to_entry(item: CatalogItem, nplurals: int) -> polib.POEntry:
    """Convert a catalog item into a polib entry."""
    references = sorted(item.references, key=lambda ref: ref.file)
    occurrences: list[tuple[str, str]] = []
    lines = [_escape_comment(comment) for comment in item.extracted]
    for ref in references:
        for position, occurrence in enumerate(ref.occurrences or [()]):
            if occurrence or (position == 0 and ref.comments):
                lines.append(_occurrence_line(len(occurrences), occurrence))
            occurrences.append((ref.file, ""))
        lines.extend(_escape_comment(comment) for comment in ref.comments)
    flags = list(item.flags)
    flags.extend(f"{URL_FLAG_PREFIX}{key}" for key in item.url_adapters)
    entry = polib.POEntry(
        msgid=item.msgid[0],
        msgctxt=item.context,
        occurrences=occurrences,
        comment="\n".join(lines),
        tcomment="\n".join(item.comments),
        flags=flags,
        obsolete=item.is_obsolete,
    )
    if item.plural:
        entry.msgid_plural = item.msgid[1]
        forms = list(item.msgstr) + [""] * max(0, nplurals - len(item.msgstr))
        entry.msgstr_plural = dict(enumerate(forms))
    else:
        entry.msgstr = item.msgstr[0] if item.msgstr else ""
    return entry


def entry_to_item(entry: polib.POEntry) -> CatalogItem:
    """Convert a polib entry into a catalog item."""
    msgid = [entry.msgid]
    if entry.msgid_plural:
        msgid.append(entry.msgid_plural)
        msgstr = [entry.msgstr_plural[index] for index in sorted(entry.msgstr_plural)]
    else:
        msgstr = [entry.msgstr]

    placeholders: dict[int, tuple[str, ...]] = {}
    comments_by_ordinal: dict[int, list[str]] = {}
    extracted: list[str] = []
    current: int | None = None
    for line in entry.comment.split("\n") if entry.comment else []:
        parsed = _parse_occurrence_line(line)
        if parsed is not None:
            current, found = parsed
            placeholders[current] = found
            continue
        comment = _unescape_comment(line)
        if current is None:
            extracted.append(comment)
        else:
            comments_by_ordinal.setdefault(current, []).append(comment)

    references: list[FileRef] = []
    for ordinal, (file, _line) in enumerate(entry.occurrences):
        if not references or references[-1].file != file:
            references.append(FileRef(file=file))
        references[-1].occurrences.append(placeholders.get(ordinal, ()))
        references[-1].comments.extend(comments_by_ordinal.get(ordinal, []))

    url_adapters: list[str] = []
    flags: list[str] = []
    for flag in entry.flags:
        if flag.startswith(URL_FLAG_PREFIX):
            url_adapters.append(flag[len(URL_FLAG_PREFIX) :])
        else:
            flags.append(flag)
    return CatalogItem(
        msgid=msgid,
        msgstr=msgstr,
        context=entry.msgctxt,
        references=references,
        comments=entry.tcomment.split("\n") if entry.tcomment else [],
        url_adapters=url_adapters,
        flags=flags,
        extracted=extracted,
    )


class PoCatalogStorage:
    """Stores each locale in `<directory>/<locale>.po`.

    URL-pattern items go to `<locale>.url.po` when `separate_urls` is set.
    """

    def __init__(
        self,
        directory: Path,
        locales: tuple[str, ...],
        source_locale: str,
        separate_urls: bool = True,
    ) -> None:
        self._directory = directory.resolve()
        self._locales = locales
        self._source_locale = source_locale
        self._separate_urls = separate_urls

    @property
    def key(self) -> str:
        """Return the resolved catalog directory."""
        return str(self._directory)

    @property
    def directory(self) -> Path:
        """Return the catalog directory."""
        return self._directory

    @property
    def files(self) -> tuple[str, ...]:
        """Return every catalog file this storage may write."""
        output: list[str] = []
        for locale in self._locales:
            output.append(str(self.catalog_path(locale)))
            if self._separate_urls:
                output.append(str(self.catalog_path(locale, url=True)))
        return tuple(output)

    def catalog_path(self, locale: str, url: bool = False) -> Path:
        """Return the path of a locale catalog file."""
        suffix = ".url.po" if url else ".po"
        return self._directory / f"{locale}{suffix}"

    def load(self, locale: str) -> Catalog | None:
        """Load a locale catalog; None when the main file does not exist."""
        main = self._read(self.catalog_path(locale))
        if main is None:
            logger.debug("Catalog not found at %s", self.catalog_path(locale))
            return None
        entries = list(main)
        if self._separate_urls:
            url_file = self._read(self.catalog_path(locale, url=True))
            if url_file is not None:
                entries.extend(url_file)
        items = [entry_to_item(entry) for entry in entries]
        headers = dict(main.metadata)
        return Catalog.from_items(
            items,
            headers=headers,
            plural_rule=parse_plural_forms(headers.get("Plural-Forms")),
        )

    def save(self, locale: str, catalog: Catalog) -> None:
        """Write the locale catalog, refreshing headers."""
        self._update_headers(locale, catalog)
        main_entries: list[polib.POEntry] = []
        url_entries: list[polib.POEntry] = []
        for item in catalog.items.values():
            entry = item_to_entry(item, catalog.plural_rule.nplurals)
            if item.is_url and self._separate_urls:
                url_entries.append(entry)
            else:
                main_entries.append(entry)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._write(self.catalog_path(locale), catalog.headers, main_entries)
        if url_entries:
            self._write(self.catalog_path(locale, url=True), catalog.headers, url_entries)

    def _update_headers(self, locale: str, catalog: Catalog) -> None:
        catalog.headers.update(
            {
                "Plural-Forms": catalog.plural_rule.header(),
                "Source-Language": self._source_locale,
                "Language": locale,
                "MIME-Version": "1.0",
                "Content-Type": "text/plain; charset=utf-8",
                "Content-Transfer-Encoding": "8bit",
            }
        )
        now = _utc_now_iso()
        for name in ("POT-Creation-Date", "PO-Revision-Date"):
            if not catalog.headers.get(name):
                catalog.headers[name] = now

    @staticmethod
    def _read(path: Path) -> polib.POFile | None:
        if not path.exists():
            return None
        try:
            return polib.pofile(str(path), wrapwidth=0)
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            raise CatalogStorageError(path=str(path), reason=str(exc)) from exc

    @staticmethod
    def _write(path: Path, headers: dict[str, str], entries: list[polib.POEntry]) -> None:
        po = polib.POFile(wrapwidth=0)
        po.metadata = dict(headers)
        for entry in entries:
            po.append(entry)
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            po.save(str(tmp))
            tmp.replace(path)
        except OSError as exc:
            raise CatalogStorageError(path=str(path), reason=str(exc)) from exc


def _utc_now_iso() -> str:
    return datetime.now(tz=UTC).isoformat(timespec="seconds").replace("+00:00", "Z")
