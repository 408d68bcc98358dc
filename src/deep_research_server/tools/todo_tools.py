"""Planning tool: the agent keeps its research plan in the thread's ``todos`` channel."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

from typing_extensions import TypedDict

from langchain_core.tools import tool

logger = logging.getLogger(__name__)

TodoStatus = Literal["pending", "in_progress", "completed"]

TODO_STATUSES = ("pending", "in_progress", "completed")


class Todo(TypedDict):
    content: str
    status: TodoStatus


def normalize_todos(raw: Any) -> list[Todo]:
    """Keep well-formed items; an unknown status is treated as pending."""

    todos: list[Todo] = []
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        content = str(item.get("content") or "").strip()
        if not content:
            continue
        status = item.get("status")
        todos.append({"content": content, "status": status if status in TODO_STATUSES else "pending"})
    return todos


@tool
def write_todos(todos: List[Todo], _agent_context: Optional[Dict[str, Any]] = None) -> str:
    """Create or replace your research plan.

    Pass the full list every time; it replaces the previous plan. Mark exactly
    the item you are working on as in_progress and finished items as completed.
    """

    updates = (_agent_context or {}).get("updates")
    if updates is None:
        return "Error: the plan cannot be saved for this run."
    plan = normalize_todos(todos)
    updates["todos"] = plan
    logger.info("[TOOLS] plan updated: %d items", len(plan))
    return f"Updated todo list to {plan}"
