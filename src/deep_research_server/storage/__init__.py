"""Virtual filesystem presented to the research agent."""

from __future__ import annotations

from .base import (
    FileData,
    FileExistsInTierError,
    FileInfo,
    FileNotFoundInTierError,
    InvalidPathError,
    StorageError,
    StorageTier,
    normalize_path,
)
from .router import EditError, PathRouter
from .state_tier import StateTier, merge_files
from .store_tier import StoreTier

__all__ = [
    "EditError",
    "FileData",
    "FileExistsInTierError",
    "FileInfo",
    "FileNotFoundInTierError",
    "InvalidPathError",
    "PathRouter",
    "StateTier",
    "StorageError",
    "StorageTier",
    "StoreTier",
    "merge_files",
    "normalize_path",
]
