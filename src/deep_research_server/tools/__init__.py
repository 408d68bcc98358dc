"""Tool registry for the research agent."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Dict

from langchain_core.tools import BaseTool

from .exa_tools import exa_find_similar, exa_get_contents, exa_search
from .filesystem_tools import edit_file, ls, read_file, write_file
from .time_tool import get_current_time_utc
from .todo_tools import write_todos
from .web_tools import visit_page, web_search


def get_registered_tools() -> Sequence[BaseTool]:
    """Return all tools available to the agent."""

    return (
        web_search,
        visit_page,
        exa_search,
        exa_find_similar,
        exa_get_contents,
        write_todos,
        ls,
        read_file,
        write_file,
        edit_file,
        get_current_time_utc,
    )


def get_tools_by_name() -> Dict[str, BaseTool]:
    """Convenience mapping for tool lookup by name."""

    return {tool.name: tool for tool in get_registered_tools()}


__all__ = [
    "get_registered_tools",
    "get_tools_by_name",
]
