from __future__ import annotations

import asyncio
import json
from pathlib import Path

from msgsync.catalog.discovery import FileMatcher
from msgsync.catalog.output import CompiledWriter
from msgsync.catalog.state import Compiled, SharedStates
from msgsync.catalog.storage import MemoryCatalogStorage
from msgsync.catalog.sync import AgentOptions, ExtractionAgent
from msgsync.compiler.elements import PluralForms, Text
from msgsync.extractors.python import PythonCallExtractor
from msgsync.runtime import Runtime
from msgsync.url.matcher import URLMatcher


def _write(root: Path, relative: str, text: str) -> str:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return relative


def _agent(root: Path, writer: CompiledWriter, **options: object) -> ExtractionAgent:
    return ExtractionAgent(
        key="main",
        root=root,
        locales=("en", "es"),
        source_locale="en",
        storage=MemoryCatalogStorage(),
        matcher=FileMatcher(include=("src/**/*.py",)),
        extractor=PythonCallExtractor(),
        shared_states=SharedStates(),
        options=AgentOptions(writer=writer, **options),  # type: ignore[arg-type]
    )


def test_writer_payload_keeps_plural_only_with_plural_items(tmp_path: Path) -> None:
    writer = CompiledWriter(tmp_path / "out", "main")
    plain = Compiled(items=[Text("Hello"), None])
    plural = Compiled(has_plurals=True, items=[PluralForms(("one", "many"))])

    plain_path = writer.write("main", "en", plain, "n != 1")
    plural_path = writer.write("main", "pl", plural, "n != 1")

    assert plain_path == (tmp_path / "out" / "main.main.en.json").resolve()
    assert json.loads(plain_path.read_text(encoding="utf-8")) == {
        "items": ["Hello", None],
        "plural": None,
    }
    assert json.loads(plural_path.read_text(encoding="utf-8")) == {
        "items": [["one", "many"]],
        "plural": "n != 1",
    }


def test_scan_writes_one_artifact_per_locale(tmp_path: Path) -> None:
    writer = CompiledWriter(tmp_path / "out", "main")
    agent = _agent(tmp_path, writer)
    files = [_write(tmp_path, "src/app.py", "_('Hello')\n_('Bye {0}').format(name)\n")]
    agent.load()

    asyncio.run(agent.scan(files))

    runtime = Runtime.from_file(writer.artifact_path("main", "es"))
    assert runtime.t(0) == "Hello"
    assert runtime.t(1, ["Ann"]) == "Bye Ann"
    assert agent.load_ids() == ("main",)


def test_unchanged_compiled_catalogs_are_not_rewritten(tmp_path: Path) -> None:
    writer = CompiledWriter(tmp_path / "out", "main")
    events: list[tuple[str, str]] = []
    writer.subscribe(lambda load_id, locale, path: events.append((load_id, locale)))
    agent = _agent(tmp_path, writer)
    files = [_write(tmp_path, "src/app.py", "_('Hello')\n")]
    agent.load()
    asyncio.run(agent.scan(files))
    written = list(events)

    asyncio.run(agent.scan(files, clean=True))

    assert ("main", "es") in written
    assert events == written


def test_granular_mode_partitions_by_file(tmp_path: Path) -> None:
    writer = CompiledWriter(tmp_path / "out", "main")
    events: list[tuple[str, str]] = []
    writer.subscribe(lambda load_id, locale, path: events.append((load_id, locale)))
    agent = _agent(tmp_path, writer, granular=True)
    files = [
        _write(tmp_path, "src/about.py", "_('About us')\n_('Shared')\n"),
        _write(tmp_path, "src/home.py", "_('Home title')\n_('Shared')\n"),
    ]
    agent.load()

    asyncio.run(agent.scan(files))

    assert agent.load_ids() == ("src_about_py", "src_home_py")
    about = Runtime.from_file(writer.artifact_path("src_about_py", "es"))
    home = Runtime.from_file(writer.artifact_path("src_home_py", "es"))
    assert [about.t(0), about.t(1)] == ["About us", "Shared"]
    assert [home.t(0), home.t(1)] == ["Home title", "Shared"]
    assert ("src_home_py", "en") in events
    assert not writer.artifact_path("main", "es").exists()


def test_url_patterns_publish_a_localized_manifest(tmp_path: Path) -> None:
    writer = CompiledWriter(tmp_path / "out", "main")
    agent = _agent(tmp_path, writer, url_patterns=("/", "/items/:id"))
    agent.load()

    manifest_path = writer.manifest_path("main")
    assert json.loads(manifest_path.read_text(encoding="utf-8")) == {
        "manifest": [["/", ["/", "/"]], ["/items/:id", ["/items/:id", "/items/:id"]]]
    }
    assert agent.state.compiled["es"].items == []
    assert agent.storage.load("es") is not None

    agent.state.catalog("es").items["/items/{0}\noriginal: /items/:id"].msgstr = ["/elementos/{0}"]
    agent.compile_all()

    manifest = json.loads(manifest_path.read_text(encoding="utf-8"))["manifest"]
    match = URLMatcher(manifest, ["en", "es"]).match("/elementos/7", "es")
    assert match is not None
    assert match.path == "/items/7"
    assert match.params == {"id": "7"}


def test_localized_manifest_prefixes_locales(tmp_path: Path) -> None:
    writer = CompiledWriter(tmp_path / "out", "main")
    agent = _agent(tmp_path, writer, url_patterns=("/about",), localize_urls=True)

    agent.load()

    manifest = json.loads(writer.manifest_path("main").read_text(encoding="utf-8"))
    assert manifest == {"manifest": [["/about", ["/en/about", "/es/about"]]]}
