from __future__ import annotations

import io
import json
from pathlib import Path

from msgsync.catalog.sync import build_agents
from msgsync.cli import main
from msgsync.config import load_effective_config


def _project(root: Path) -> None:
    (root / "msgsync.toml").write_text(
        "\n".join(
            [
                'locales = ["en", "es"]',
                "",
                "[agents.web]",
                'include = ["web/**/*.py"]',
                'catalog_dir = "locales"',
                "",
                "[agents.admin]",
                'include = ["admin/**/*.py"]',
                'catalog_dir = "locales"',
            ]
        ),
        encoding="utf-8",
    )
    for relative, text in (
        ("web/views.py", "_('Home')\n_('Save')\n"),
        ("admin/panel.py", "_('Dashboard')\n_('Save')\n"),
    ):
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


def _extract(root: Path, *flags: str) -> str:
    out = io.StringIO()
    assert main(["--project-root", str(root), "extract", *flags], out=out) == 0
    return out.getvalue()


def test_agents_on_one_catalog_dir_share_state_and_writer(tmp_path: Path) -> None:
    _project(tmp_path)

    web, admin = build_agents(load_effective_config(tmp_path))

    assert web.state is admin.state
    assert web.is_owner is True
    assert admin.is_owner is False
    assert web.options.writer is admin.options.writer


def test_shared_catalog_holds_messages_of_every_agent(tmp_path: Path) -> None:
    _project(tmp_path)

    output = _extract(tmp_path)

    assert output.splitlines()[0].startswith("web: 1 files, 2 messages")
    assert output.splitlines()[1].startswith("admin: 1 files, 2 messages")
    artifact = json.loads((tmp_path / "locales" / "web.web.es.json").read_text(encoding="utf-8"))
    assert artifact["items"] == ["Home", "Save", "Dashboard"]


def test_clean_pass_of_one_agent_keeps_sibling_references(tmp_path: Path) -> None:
    _project(tmp_path)
    _extract(tmp_path)
    (tmp_path / "admin" / "panel.py").write_text("_('Save')\n", encoding="utf-8")

    output = _extract(tmp_path, "--clean")

    assert output.splitlines()[1].endswith("removed: 2")
    artifact = json.loads((tmp_path / "locales" / "web.web.en.json").read_text(encoding="utf-8"))
    assert artifact["items"] == ["Home", "Save"]
