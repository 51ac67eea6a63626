from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/msgsync/cli.py",
        "src/msgsync/config.py",
        "src/msgsync/runtime.py",
        "src/msgsync/compiler/__init__.py",
        "src/msgsync/messages/__init__.py",
        "src/msgsync/catalog/__init__.py",
        "src/msgsync/url/__init__.py",
        "src/msgsync/extractors/__init__.py",
        "src/msgsync/logging/__init__.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
