"""Durable tier backed by a LangGraph ``BaseStore``; shared across threads."""

from __future__ import annotations

import logging
from typing import Iterable

from langgraph.store.base import BaseStore

from .base import FileData, StorageTier

logger = logging.getLogger(__name__)

_PAGE_SIZE = 100


class StoreTier(StorageTier):
    durability = "durable"

    def __init__(self, store: BaseStore, *, assistant_id: str | None = None) -> None:
        self.store = store
        self.namespace: tuple[str, ...] = (assistant_id, "filesystem") if assistant_id else ("filesystem",)

    @staticmethod
    def _to_file_data(value: dict) -> FileData:
        content = value.get("content", "")
        # Older records stored content as a list of lines
        if isinstance(content, list):
            content = "\n".join(str(line) for line in content)
        return {
            "content": content,
            "created_at": value.get("created_at", ""),
            "modified_at": value.get("modified_at", ""),
        }

    def get(self, path: str) -> FileData | None:
        item = self.store.get(self.namespace, path)
        if item is None:
            return None
        return self._to_file_data(item.value)

    def put(self, path: str, data: FileData) -> None:
        self.store.put(self.namespace, path, dict(data))

    def remove(self, path: str) -> bool:
        if self.store.get(self.namespace, path) is None:
            return False
        self.store.delete(self.namespace, path)
        return True

    def entries(self, prefix: str) -> Iterable[tuple[str, FileData]]:
        offset = 0
        results: list[tuple[str, FileData]] = []
        while True:
            page = self.store.search(self.namespace, limit=_PAGE_SIZE, offset=offset)
            for item in page:
                if item.key.startswith(prefix):
                    results.append((item.key, self._to_file_data(item.value)))
            if len(page) < _PAGE_SIZE:
                break
            offset += _PAGE_SIZE
        logger.debug("Store tier listed %d entries under %s", len(results), prefix)
        return results
