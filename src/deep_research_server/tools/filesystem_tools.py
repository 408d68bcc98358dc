"""Virtual filesystem tools; the tool node injects the path router as ``backend``."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from langchain_core.tools import tool

from ..storage import PathRouter, StorageError

logger = logging.getLogger(__name__)

_NO_BACKEND = "Error: file storage is not available for this run."


def _backend(context: Optional[Dict[str, Any]]) -> PathRouter | None:
    backend = (context or {}).get("backend")
    return backend if isinstance(backend, PathRouter) else None


def _format_numbered(content: str, offset: int, limit: int) -> str:
    lines = content.splitlines()
    if not lines:
        return "System reminder: File exists but has empty contents"
    if offset >= len(lines):
        return f"Error: Line offset {offset} exceeds file length ({len(lines)} lines)"
    selected = lines[offset: offset + limit]
    return "\n".join(f"{number:6d}\t{line}" for number, line in enumerate(selected, start=offset + 1))


@tool
def ls(path: str = "/", _agent_context: Optional[Dict[str, Any]] = None) -> str:
    """List the files and directories directly under a path.

    Files under /memories/ persist across conversations; every other path is
    scratch space that only lives as long as this conversation.
    """

    backend = _backend(_agent_context)
    if backend is None:
        return _NO_BACKEND
    try:
        infos = backend.list(path)
    except StorageError as exc:
        return f"Error: {exc}"
    if not infos:
        return f"No files found in {path}"
    return "\n".join(info["path"] for info in infos)


@tool
def read_file(
    file_path: str,
    offset: int = 0,
    limit: int = 2000,
    _agent_context: Optional[Dict[str, Any]] = None,
) -> str:
    """Read a file, returning its lines numbered from 1.

    Args:
        file_path: Absolute virtual path, e.g. /notes.md or /memories/topic.md
        offset: Line number to start reading from (0-based)
        limit: Maximum number of lines to return
    """

    backend = _backend(_agent_context)
    if backend is None:
        return _NO_BACKEND
    try:
        content = backend.read(file_path)
    except StorageError as exc:
        return f"Error: {exc}"
    return _format_numbered(content, max(offset, 0), max(limit, 1))


@tool
def write_file(file_path: str, content: str, _agent_context: Optional[Dict[str, Any]] = None) -> str:
    """Create a new file. Fails if the file exists; use edit_file to change it."""

    backend = _backend(_agent_context)
    if backend is None:
        return _NO_BACKEND
    try:
        backend.write(file_path, content)
    except StorageError as exc:
        return f"Error: {exc}"
    tier = backend.resolve(file_path)
    logger.info("[TOOLS] wrote %s (%s tier, %d chars)", file_path, tier.durability, len(content))
    return f"Updated file {file_path}"


@tool
def edit_file(
    file_path: str,
    old_string: str,
    new_string: str,
    replace_all: bool = False,
    _agent_context: Optional[Dict[str, Any]] = None,
) -> str:
    """Replace an exact string in an existing file.

    old_string must be unique in the file unless replace_all is true.
    """

    backend = _backend(_agent_context)
    if backend is None:
        return _NO_BACKEND
    try:
        count = backend.edit(file_path, old_string, new_string, replace_all=replace_all)
    except StorageError as exc:
        return f"Error: {exc}"
    return f"Successfully replaced {count} instance(s) of the string in '{file_path}'"
