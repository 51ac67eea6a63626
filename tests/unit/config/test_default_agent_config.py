from __future__ import annotations

from pathlib import Path

from msgsync.config import default_config, load_effective_config


def test_default_config_has_one_python_agent(tmp_path: Path) -> None:
    config = default_config(tmp_path)

    assert config.locales == ("en",)
    assert config.source_locale == "en"
    assert config.data_dir == tmp_path.resolve() / ".msgsync"
    (agent,) = config.agents
    assert agent.key == "main"
    assert agent.include == ("src/**/*.py",)
    assert agent.extractor == "python"
    assert agent.catalog_dir == tmp_path.resolve() / "src" / "locales"
    assert agent.separate_url_catalog is True


def test_missing_config_file_keeps_defaults(tmp_path: Path) -> None:
    assert load_effective_config(tmp_path) == default_config(tmp_path)
