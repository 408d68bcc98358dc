"""Exceptions raised by the run orchestration layer."""

from __future__ import annotations


class DeepResearchError(Exception):
    """Base class for server-side errors."""


class ExecutorStartError(DeepResearchError):
    """The executor could not start a run; raised before any event is produced."""


class RunExceeded(DeepResearchError):
    """A run hit its step ceiling (recursion limit)."""

    def __init__(self, limit: int, message: str | None = None) -> None:
        self.limit = limit
        super().__init__(
            message
            or f"Run exceeded the recursion limit of {limit} steps without reaching a stop condition."
        )
