"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

from msgsync.extractors.registry import build_extractor_registry
from msgsync.url.patterns import PatternSyntaxError, parse

CONFIG_FILE_NAME = "msgsync.toml"
LOG_LEVELS = ("error", "warning", "info", "debug")

DEFAULT_AGENT_KEY = "main"
DEFAULT_INCLUDE = ("src/**/*.py",)
DEFAULT_CATALOG_DIR = "src/locales"


@dataclass(slots=True, frozen=True)
class AgentConfig:
    """Settings of one extraction agent."""

    key: str
    include: tuple[str, ...]
    ignore: tuple[str, ...] = ()
    catalog_dir: Path = Path(DEFAULT_CATALOG_DIR)
    out_dir: Path | None = None
    source_locale: str | None = None
    granular: bool = False
    extractor: str = "python"
    url_patterns: tuple[str, ...] = ()
    localize_urls: bool = False
    separate_url_catalog: bool = True

    @property
    def compiled_dir(self) -> Path:
        """Return where compiled artifacts are written."""
        return self.out_dir or self.catalog_dir


@dataclass(slots=True, frozen=True)
class AuditConfig:
    """Extraction audit log toggle."""

    enabled: bool = True


@dataclass(slots=True, frozen=True)
class ProjectConfig:
    """Fully merged project configuration."""

    project_root: Path
    data_dir: Path
    locales: tuple[str, ...]
    source_locale: str
    log_level: str
    audit: AuditConfig
    agents: tuple[AgentConfig, ...]

    def agent_source_locale(self, agent: AgentConfig) -> str:
        """Return the effective source locale of an agent."""
        return agent.source_locale or self.source_locale

    def to_public_dict(self) -> dict[str, object]:
        """Return a serializable config snapshot."""
        return {
            "project_root": str(self.project_root),
            "data_dir": str(self.data_dir),
            "locales": list(self.locales),
            "source_locale": self.source_locale,
            "log_level": self.log_level,
            "audit": {"enabled": self.audit.enabled},
            "agents": {
                agent.key: {
                    "include": list(agent.include),
                    "ignore": list(agent.ignore),
                    "catalog_dir": str(agent.catalog_dir),
                    "out_dir": str(agent.compiled_dir),
                    "source_locale": self.agent_source_locale(agent),
                    "granular": agent.granular,
                    "extractor": agent.extractor,
                    "url_patterns": list(agent.url_patterns),
                    "localize_urls": agent.localize_urls,
                    "separate_url_catalog": agent.separate_url_catalog,
                }
                for agent in self.agents
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    log_level: str | None = None
    locales: tuple[str, ...] | None = None
    audit_enabled: bool | None = None


def default_config(project_root: Path) -> ProjectConfig:
    """Build default config for a given project root."""
    resolved_root = project_root.resolve()
    return ProjectConfig(
        project_root=resolved_root,
        data_dir=resolved_root / ".msgsync",
        locales=("en",),
        source_locale="en",
        log_level="info",
        audit=AuditConfig(),
        agents=(
            AgentConfig(
                key=DEFAULT_AGENT_KEY,
                include=DEFAULT_INCLUDE,
                catalog_dir=resolved_root / DEFAULT_CATALOG_DIR,
            ),
        ),
    )


def load_project_config_file(project_root: Path) -> dict[str, object]:
    """Load optional msgsync.toml from the project root."""
    config_path = project_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str, name: str | None = None) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name or key}' must be a table.")
    return value


def _tuple_of_strings(value: object, name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{name}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{name}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _optional_str(value: object, name: str, default: str | None) -> str | None:
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    return value


def _log_level(value: object, name: str, default: str) -> str:
    level = _optional_str(value, name, default) or default
    if level not in LOG_LEVELS:
        raise ValueError(f"Config field '{name}' must be one of {', '.join(LOG_LEVELS)}.")
    return level


def _extractor_name(value: object, name: str) -> str:
    extractor = _optional_str(value, name, "python") or "python"
    known = build_extractor_registry().names()
    if extractor not in known:
        raise ValueError(f"Config field '{name}' must be one of {', '.join(known)}.")
    return extractor


def _resolve_dir(root: Path, value: str) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = root / path
    return path.resolve()


def _merge_agent(root: Path, key: str, payload: dict[str, object]) -> AgentConfig:
    section = f"agents.{key}"
    include = DEFAULT_INCLUDE
    if "include" in payload:
        include = _tuple_of_strings(payload["include"], f"{section}.include")
    if not include:
        raise ValueError(f"Config field '{section}.include' must not be empty.")
    ignore: tuple[str, ...] = ()
    if "ignore" in payload:
        ignore = _tuple_of_strings(payload["ignore"], f"{section}.ignore")
    catalog_dir = _optional_str(payload.get("catalog_dir"), f"{section}.catalog_dir", DEFAULT_CATALOG_DIR)
    out_dir = _optional_str(payload.get("out_dir"), f"{section}.out_dir", None)
    url_patterns: tuple[str, ...] = ()
    if "url_patterns" in payload:
        url_patterns = _tuple_of_strings(payload["url_patterns"], f"{section}.url_patterns")
        for pattern in url_patterns:
            try:
                parse(pattern)
            except PatternSyntaxError as exc:
                raise ValueError(
                    f"Config field '{section}.url_patterns' has an invalid pattern: {exc}"
                ) from exc
    return AgentConfig(
        key=key,
        include=include,
        ignore=ignore,
        catalog_dir=_resolve_dir(root, catalog_dir or DEFAULT_CATALOG_DIR),
        out_dir=_resolve_dir(root, out_dir) if out_dir else None,
        source_locale=_optional_str(payload.get("source_locale"), f"{section}.source_locale", None),
        granular=_optional_bool(payload.get("granular"), f"{section}.granular", False),
        extractor=_extractor_name(payload.get("extractor"), f"{section}.extractor"),
        url_patterns=url_patterns,
        localize_urls=_optional_bool(payload.get("localize_urls"), f"{section}.localize_urls", False),
        separate_url_catalog=_optional_bool(
            payload.get("separate_url_catalog"), f"{section}.separate_url_catalog", True
        ),
    )


def merge_config(
    base: ProjectConfig, project_payload: dict[str, object], overrides: CliOverrides
) -> ProjectConfig:
    """Merge defaults, project config, then CLI/startup overrides."""
    audit_payload = _get_table(project_payload, "audit")
    agents_payload = _get_table(project_payload, "agents")

    locales = base.locales
    if "locales" in project_payload:
        locales = _tuple_of_strings(project_payload["locales"], "locales")
    source_locale = _optional_str(project_payload.get("source_locale"), "source_locale", None)
    data_dir = base.data_dir
    raw_data_dir = _optional_str(project_payload.get("data_dir"), "data_dir", None)
    if raw_data_dir is not None:
        data_dir = _resolve_dir(base.project_root, raw_data_dir)

    agents = base.agents
    if agents_payload:
        agents = tuple(
            _merge_agent(base.project_root, key, _get_table(agents_payload, key, f"agents.{key}"))
            for key in agents_payload
        )

    merged = ProjectConfig(
        project_root=base.project_root,
        data_dir=data_dir,
        locales=locales,
        source_locale=source_locale or (locales[0] if locales else base.source_locale),
        log_level=_log_level(project_payload.get("log_level"), "log_level", base.log_level),
        audit=AuditConfig(
            enabled=_optional_bool(audit_payload.get("enabled"), "audit.enabled", base.audit.enabled)
        ),
        agents=agents,
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ProjectConfig, overrides: CliOverrides) -> ProjectConfig:
    """Apply startup overrides at highest precedence."""
    locales = config.locales
    source_locale = config.source_locale
    if overrides.locales is not None:
        locales = overrides.locales
        if source_locale not in locales and locales:
            source_locale = locales[0]
    if not locales:
        raise ValueError("Config field 'locales' must not be empty.")
    audit = config.audit
    if overrides.audit_enabled is not None:
        audit = AuditConfig(enabled=overrides.audit_enabled)
    data_dir = overrides.data_dir or config.data_dir
    return replace(
        config,
        data_dir=data_dir.resolve(),
        locales=locales,
        source_locale=source_locale,
        log_level=_log_level(overrides.log_level, "overrides.log_level", config.log_level),
        audit=audit,
    )


def load_effective_config(
    project_root: Path, overrides: CliOverrides | None = None
) -> ProjectConfig:
    """Load effective config using merge order defaults -> project config -> overrides."""
    resolved_root = project_root.resolve()
    base = default_config(resolved_root)
    payload = load_project_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())
