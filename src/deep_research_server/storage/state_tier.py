"""Ephemeral, thread-scoped tier backed by the graph's ``files`` state channel."""

from __future__ import annotations

from typing import Iterable, Mapping

from .base import FileData, StorageTier


def merge_files(
    left: Mapping[str, FileData] | None,
    right: Mapping[str, FileData | None] | None,
) -> dict[str, FileData]:
    """Reducer for the ``files`` channel; a ``None`` value deletes the path."""

    merged = dict(left or {})
    for path, data in (right or {}).items():
        if data is None:
            merged.pop(path, None)
        else:
            merged[path] = data
    return merged


class StateTier(StorageTier):
    """Reads a snapshot of the thread's files and collects pending updates.

    Nothing is persisted here: the tool node returns :attr:`updates` as a state
    update and the checkpointer stores it with the thread, so the files vanish
    with the thread.
    """

    durability = "ephemeral"

    def __init__(self, files: Mapping[str, FileData] | None = None) -> None:
        self._files: dict[str, FileData] = dict(files or {})
        self.updates: dict[str, FileData | None] = {}

    def get(self, path: str) -> FileData | None:
        return self._files.get(path)

    def put(self, path: str, data: FileData) -> None:
        self._files[path] = data
        self.updates[path] = data

    def remove(self, path: str) -> bool:
        if path not in self._files:
            return False
        del self._files[path]
        self.updates[path] = None
        return True

    def entries(self, prefix: str) -> Iterable[tuple[str, FileData]]:
        return [(path, data) for path, data in self._files.items() if path.startswith(prefix)]
