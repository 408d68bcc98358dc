from __future__ import annotations

from datetime import datetime, timezone

from langchain_core.tools import tool


@tool
def get_current_time_utc() -> str:
    """Return the current UTC time (ISO8601, second precision).

    Use it to judge how recent a search result is or to date a saved note.
    """

    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()
