"""Command line entry point: `msgsync extract` and `msgsync status`."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TextIO

from msgsync.catalog.state import SourceLocaleConflictError
from msgsync.catalog.storage import Catalog, CatalogStorageError, catalog_status
from msgsync.catalog.sync import ExtractionAgent, ScanResult, build_agents
from msgsync.config import LOG_LEVELS, CliOverrides, ProjectConfig, load_effective_config
from msgsync.extractors.base import ExtractorError
from msgsync.logging.setup import configure_logging

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for the command line."""
    parser = argparse.ArgumentParser(prog="msgsync")
    parser.add_argument("--project-root", required=False, default=".")
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--log-level", choices=LOG_LEVELS, required=False, default=None)
    parser.add_argument(
        "--locales", required=False, default=None, help="Comma separated locale list."
    )
    parser.add_argument("--no-audit", action="store_true", default=False)
    commands = parser.add_subparsers(dest="command", required=True)

    extract = commands.add_parser("extract", help="Extract messages into catalogs.")
    extract.add_argument(
        "--clean", action="store_true", help="Drop stale references and obsolete items."
    )
    extract.add_argument(
        "--sync", action="store_true", help="Visit files one at a time instead of concurrently."
    )

    status = commands.add_parser("status", help="Report translation progress per locale.")
    status.add_argument("--json", action="store_true", help="Print a JSON document.")
    return parser


def overrides_from_args(args: argparse.Namespace) -> CliOverrides:
    """Translate parsed arguments into config overrides."""
    locales: tuple[str, ...] | None = None
    if args.locales is not None:
        locales = tuple(part.strip() for part in args.locales.split(",") if part.strip())
    return CliOverrides(
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        log_level=args.log_level,
        locales=locales,
        audit_enabled=False if args.no_audit else None,
    )


async def _extract_all(
    agents: list[ExtractionAgent], clean: bool, sequential: bool
) -> list[tuple[ExtractionAgent, ScanResult]]:
    results: list[tuple[ExtractionAgent, ScanResult]] = []
    for agent in agents:
        agent.load()
    for agent in agents:
        files = agent.discover()
        logger.info("%s: extracting from %d files", agent.key, len(files))
        results.append((agent, await agent.scan(files, clean=clean, sequential=sequential)))
    return results


def run_extract(config: ProjectConfig, clean: bool, sequential: bool, out: TextIO) -> int:
    """Run one extraction pass for every configured agent."""
    agents = build_agents(config)
    results = asyncio.run(_extract_all(agents, clean, sequential))
    for agent, result in results:
        written = ", ".join(result.written_locales) or "none"
        out.write(
            f"{agent.key}: {result.files} files, {result.messages} messages, "
            f"written: {written}, removed: {result.removed_items}\n"
        )
    return 0


def collect_status(config: ProjectConfig) -> dict[str, dict[str, dict[str, int]]]:
    """Read persisted catalogs and count items per agent and locale."""
    output: dict[str, dict[str, dict[str, int]]] = {}
    for agent in build_agents(config):
        per_locale: dict[str, dict[str, int]] = {}
        for locale in agent.locales:
            catalog = agent.storage.load(locale) or Catalog()
            status = catalog_status(catalog)
            per_locale[locale] = {
                "total": status.total,
                "untranslated": status.untranslated,
                "obsolete": status.obsolete,
            }
        output[agent.key] = per_locale
    return output


def run_status(config: ProjectConfig, as_json: bool, out: TextIO) -> int:
    """Print translation progress."""
    report = collect_status(config)
    if as_json:
        out.write(json.dumps(report, sort_keys=True, indent=2))
        out.write("\n")
        return 0
    for agent_key, per_locale in report.items():
        for locale, counts in per_locale.items():
            out.write(
                f"{agent_key} ({locale}): total: {counts['total']}, "
                f"untranslated: {counts['untranslated']}, obsolete: {counts['obsolete']}\n"
            )
    return 0


def main(argv: list[str] | None = None, out: TextIO | None = None) -> int:
    """Entrypoint for the msgsync command."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    stream = out or sys.stdout
    try:
        config = load_effective_config(Path(args.project_root), overrides_from_args(args))
    except ValueError as exc:
        parser.error(str(exc))
    configure_logging(config.log_level)
    try:
        if args.command == "extract":
            return run_extract(config, clean=args.clean, sequential=args.sync, out=stream)
        return run_status(config, as_json=args.json, out=stream)
    except (CatalogStorageError, SourceLocaleConflictError, ExtractorError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
