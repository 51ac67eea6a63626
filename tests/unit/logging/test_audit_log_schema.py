from __future__ import annotations

import asyncio
import json
from pathlib import Path

from msgsync.catalog.sync import build_agents
from msgsync.config import load_effective_config
from msgsync.logging.audit import ExtractionEvent, JsonlAuditLogger


def _event(agent: str, timestamp: str) -> ExtractionEvent:
    return ExtractionEvent(
        timestamp=timestamp,
        agent=agent,
        locales=2,
        files=3,
        clean=False,
        sequential=False,
        written_locales=("en",),
        removed_items=0,
        duration_ms=1.5,
    )


def test_extraction_pass_writes_jsonl_schema(tmp_path: Path) -> None:
    (tmp_path / "msgsync.toml").write_text('locales = ["en", "es"]\n', encoding="utf-8")
    source = tmp_path / "src" / "app.py"
    source.parent.mkdir(parents=True)
    source.write_text("_('Hello')\n", encoding="utf-8")
    (agent,) = build_agents(load_effective_config(tmp_path))
    agent.load()

    asyncio.run(agent.scan(agent.discover(), clean=True))

    audit_path = tmp_path / ".msgsync" / "audit.jsonl"
    lines = audit_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    event = json.loads(lines[-1])
    assert set(event.keys()) == {
        "agent",
        "clean",
        "duration_ms",
        "files",
        "locales",
        "removed_items",
        "sequential",
        "timestamp",
        "written_locales",
    }
    assert event["agent"] == "main"
    assert event["files"] == 1
    assert event["clean"] is True
    assert event["written_locales"] == ["en", "es"]
    assert isinstance(event["timestamp"], str)


def test_read_filters_by_agent_and_timestamp(tmp_path: Path) -> None:
    audit = JsonlAuditLogger(tmp_path / "logs" / "audit.jsonl")
    audit.append(_event("main", "2026-01-01T00:00:00.000Z"))
    audit.append(_event("admin", "2026-01-02T00:00:00.000Z"))
    audit.append(_event("main", "2026-01-03T00:00:00.000Z"))

    assert [entry["timestamp"] for entry in audit.read(agent="main")] == [
        "2026-01-01T00:00:00.000Z",
        "2026-01-03T00:00:00.000Z",
    ]
    assert len(audit.read(since="2026-01-02T00:00:00.000Z")) == 2
    assert audit.read(limit=1)[0]["timestamp"] == "2026-01-03T00:00:00.000Z"
    assert audit.read(limit=0) == []


def test_read_skips_malformed_lines(tmp_path: Path) -> None:
    audit = JsonlAuditLogger(tmp_path / "audit.jsonl")
    audit.append(_event("main", "2026-01-01T00:00:00.000Z"))
    with audit.path.open("a", encoding="utf-8") as handle:
        handle.write("not json\n\n")

    assert len(audit.read()) == 1
