"""Longest-prefix routing of virtual file operations onto storage tiers."""

from __future__ import annotations

import logging
from typing import Mapping

from .base import FileData, FileInfo, StorageError, StorageTier, directory_prefix, normalize_path

logger = logging.getLogger(__name__)


class EditError(StorageError):
    pass


class PathRouter:
    """Present several storage tiers as a single virtual namespace.

    Each route binds a directory prefix (for example ``/memories/``) to a tier.
    A path is served by the tier bound to the longest matching prefix, with the
    prefix stripped, and by ``default`` when no prefix matches. Operations never
    fan out: a path touches exactly one tier.
    """

    def __init__(self, default: StorageTier, routes: Mapping[str, StorageTier] | None = None) -> None:
        self.default = default
        bindings = [(directory_prefix(prefix), tier) for prefix, tier in (routes or {}).items()]
        # Longest prefix first so the most specific binding wins
        self.routes: list[tuple[str, StorageTier]] = sorted(bindings, key=lambda item: len(item[0]), reverse=True)

    def match(self, path: str) -> tuple[str | None, StorageTier, str]:
        """Return ``(prefix, tier, tier_path)`` for ``path``; ``prefix`` is None for the default tier."""

        normalized = normalize_path(path)
        for prefix, tier in self.routes:
            if normalized.startswith(prefix) or normalized == prefix.rstrip("/"):
                suffix = normalized[len(prefix):] if normalized.startswith(prefix) else ""
                return prefix, tier, "/" + suffix
        return None, self.default, normalized

    def resolve(self, path: str) -> StorageTier:
        return self.match(path)[1]

    def read(self, path: str) -> str:
        _, tier, tier_path = self.match(path)
        return tier.read(tier_path)

    def write(self, path: str, content: str, *, overwrite: bool = False) -> FileData:
        prefix, tier, tier_path = self.match(path)
        logger.debug("write %s -> %s tier (%s)", path, tier.durability, prefix or "default")
        return tier.write(tier_path, content, overwrite=overwrite)

    def edit(self, path: str, old_string: str, new_string: str, *, replace_all: bool = False) -> int:
        """Replace ``old_string`` in an existing file and return the replacement count."""

        _, tier, tier_path = self.match(path)
        content = tier.read(tier_path)
        occurrences = content.count(old_string) if old_string else 0
        if occurrences == 0:
            raise EditError(f"String not found in file: '{old_string}'")
        if occurrences > 1 and not replace_all:
            raise EditError(
                f"String '{old_string}' appears {occurrences} times in file. "
                "Use replace_all=True to replace all instances, or provide a more specific string."
            )
        updated = content.replace(old_string, new_string) if replace_all else content.replace(old_string, new_string, 1)
        tier.write(tier_path, updated, overwrite=True)
        return occurrences if replace_all else 1

    def delete(self, path: str) -> None:
        _, tier, tier_path = self.match(path)
        tier.delete(tier_path)

    def exists(self, path: str) -> bool:
        _, tier, tier_path = self.match(path)
        return tier.exists(tier_path)

    def list(self, prefix: str = "/") -> list[FileInfo]:
        directory = directory_prefix(prefix)
        route_prefix, tier, tier_path = self.match(directory)
        if route_prefix is not None:
            base = route_prefix.rstrip("/")
            return [{**info, "path": base + info["path"]} for info in tier.list(tier_path)]

        infos = tier.list(directory)
        seen = {info["path"] for info in infos}
        for bound_prefix, _ in self.routes:
            # Surface routes that are direct children of the listed directory
            if bound_prefix.startswith(directory) and "/" not in bound_prefix[len(directory):].rstrip("/"):
                if bound_prefix not in seen:
                    infos.append({"path": bound_prefix, "is_dir": True})
        infos.sort(key=lambda info: info["path"])
        return infos

    def move(self, source: str, destination: str, *, overwrite: bool = False) -> None:
        """Move a file, possibly across tiers.

        This is read, write, delete with no rollback: if the delete fails the file
        exists at both paths.
        """

        content = self.read(source)
        self.write(destination, content, overwrite=overwrite)
        self.delete(source)
