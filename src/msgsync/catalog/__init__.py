"""Catalog storage, shared extraction state and compiled output."""

from .discovery import FileMatcher, discover_files, glob_matches
from .output import CompiledWriter
from .pofile import PoCatalogStorage
from .state import (
    Compiled,
    GranularState,
    GranularStates,
    SharedState,
    SharedStates,
    SourceLocaleConflictError,
    default_load_id,
)
from .storage import (
    Catalog,
    CatalogStatus,
    CatalogStorage,
    CatalogStorageError,
    MemoryCatalogStorage,
    PluralRule,
    catalog_status,
)

__all__ = [
    "Catalog",
    "CatalogStatus",
    "CatalogStorage",
    "CatalogStorageError",
    "Compiled",
    "CompiledWriter",
    "FileMatcher",
    "GranularState",
    "GranularStates",
    "MemoryCatalogStorage",
    "PluralRule",
    "PoCatalogStorage",
    "SharedState",
    "SharedStates",
    "SourceLocaleConflictError",
    "catalog_status",
    "default_load_id",
    "discover_files",
    "glob_matches",
]
