"""Storage tier contract shared by every backend behind the path router."""

from __future__ import annotations

import posixpath
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable

from typing_extensions import TypedDict


class FileData(TypedDict):
    content: str
    created_at: str
    modified_at: str


class FileInfo(TypedDict, total=False):
    path: str
    is_dir: bool
    size: int
    modified_at: str


class StorageError(Exception):
    """Base class for virtual filesystem errors."""


class InvalidPathError(StorageError):
    pass


class FileNotFoundInTierError(StorageError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File '{path}' not found")


class FileExistsInTierError(StorageError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Cannot write to {path} because it already exists. Read and then edit the file instead."
        )


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_file_data(content: str, created_at: str | None = None) -> FileData:
    timestamp = now_iso()
    return {"content": content, "created_at": created_at or timestamp, "modified_at": timestamp}


def normalize_path(path: str) -> str:
    """Return an absolute, normalised virtual path.

    Raises:
        InvalidPathError: If the path is empty or escapes the root with ``..``.
    """

    if not isinstance(path, str) or not path.strip():
        raise InvalidPathError("Path must be a non-empty string")
    raw = path.strip().replace("\\", "/")
    if ".." in raw.split("/"):
        raise InvalidPathError(f"Path traversal is not allowed: {path}")
    if not raw.startswith("/"):
        raw = "/" + raw
    normalized = posixpath.normpath(raw)
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    # normpath drops the trailing slash that marks a directory
    if raw.endswith("/") and normalized != "/":
        normalized += "/"
    return normalized


def directory_prefix(path: str) -> str:
    normalized = normalize_path(path)
    return normalized if normalized.endswith("/") else normalized + "/"


def list_children(entries: Iterable[tuple[str, FileData]], prefix: str) -> list[FileInfo]:
    """Collapse a flat set of file paths into the direct children of ``prefix``."""

    directory = directory_prefix(prefix)
    files: list[FileInfo] = []
    subdirs: set[str] = set()
    for path, data in entries:
        if not path.startswith(directory):
            continue
        relative = path[len(directory):]
        if "/" in relative:
            subdirs.add(directory + relative.split("/", 1)[0] + "/")
            continue
        files.append(
            {
                "path": path,
                "is_dir": False,
                "size": len(data.get("content", "")),
                "modified_at": data.get("modified_at", ""),
            }
        )
    infos = files + [{"path": subdir, "is_dir": True} for subdir in subdirs]
    infos.sort(key=lambda info: info["path"])
    return infos


class StorageTier(ABC):
    """A named-blob store scoped to one thread or to a global namespace."""

    #: "ephemeral" tiers vanish with their thread, "durable" tiers outlive it
    durability: str = "ephemeral"

    @abstractmethod
    def get(self, path: str) -> FileData | None:
        """Return the stored record for ``path`` or ``None``."""

    @abstractmethod
    def put(self, path: str, data: FileData) -> None:
        """Store ``data`` at ``path`` unconditionally."""

    @abstractmethod
    def remove(self, path: str) -> bool:
        """Remove ``path``; return whether anything was removed."""

    @abstractmethod
    def entries(self, prefix: str) -> Iterable[tuple[str, FileData]]:
        """Yield every ``(path, data)`` stored under ``prefix``."""

    def read(self, path: str) -> str:
        path = normalize_path(path)
        data = self.get(path)
        if data is None:
            raise FileNotFoundInTierError(path)
        return data["content"]

    def write(self, path: str, content: str, *, overwrite: bool = False) -> FileData:
        path = normalize_path(path)
        existing = self.get(path)
        if existing is not None and not overwrite:
            raise FileExistsInTierError(path)
        data = create_file_data(content, created_at=existing["created_at"] if existing else None)
        self.put(path, data)
        return data

    def delete(self, path: str) -> None:
        path = normalize_path(path)
        if not self.remove(path):
            raise FileNotFoundInTierError(path)

    def exists(self, path: str) -> bool:
        return self.get(normalize_path(path)) is not None

    def list(self, prefix: str = "/") -> list[FileInfo]:
        directory = directory_prefix(prefix)
        return list_children(self.entries(directory), directory)
