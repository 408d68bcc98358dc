"""Out-of-band reads and shallow merges against a thread's latest state.

A merge is read, overlay, return: every field in the patch replaces the field
in the current snapshot wholesale. Whether the merged state is also written
back depends on the executor exposing ``aupdate_state`` *and* durable merges
being enabled. Otherwise the result is only an echo for optimistic clients:
``durable`` is False, ``checkpoint_id`` is a placeholder, and a reconnecting
client will see the old state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from langchain_core.runnables import RunnableConfig

from .executor import Executor, supports_state_writes

logger = logging.getLogger(__name__)

PLACEHOLDER_CHECKPOINT_ID = "mock-checkpoint"


@dataclass
class MergeResult:
    values: dict[str, Any]
    thread_id: str
    checkpoint_id: str
    durable: bool


@dataclass
class ThreadState:
    values: dict[str, Any]
    thread_id: str
    checkpoint_id: str | None
    next: list[str] = field(default_factory=list)


def _thread_config(thread_id: str) -> RunnableConfig:
    return {"configurable": {"thread_id": thread_id}}


def _checkpoint_id(config: Mapping[str, Any] | None) -> str | None:
    if not config:
        return None
    return (config.get("configurable") or {}).get("checkpoint_id")


class StateMergeShim:
    def __init__(self, executor: Executor, *, durable_writes: bool = False, as_node: str | None = None) -> None:
        self.executor = executor
        self.as_node = as_node
        self.durable_writes = durable_writes and supports_state_writes(executor)
        if durable_writes and not self.durable_writes:
            logger.warning("Durable state merges requested but the executor cannot write state; echoing only")

    @property
    def supports_durable_merge(self) -> bool:
        return self.durable_writes

    async def read(self, thread_id: str) -> ThreadState:
        snapshot = await self.executor.aget_state(_thread_config(thread_id))
        return ThreadState(
            values=dict(getattr(snapshot, "values", None) or {}),
            thread_id=thread_id,
            checkpoint_id=_checkpoint_id(getattr(snapshot, "config", None)),
            next=list(getattr(snapshot, "next", None) or ()),
        )

    async def merge(self, thread_id: str, patch: Mapping[str, Any]) -> MergeResult:
        """Overlay ``patch`` onto the thread's current values.

        A thread that has never run has an empty snapshot. Errors while reading
        or writing propagate; nothing is partially applied.
        """

        if not isinstance(patch, Mapping):
            raise TypeError("State values must be a mapping of field names to values")

        current = await self.read(thread_id)
        merged = {**current.values, **patch}

        if not self.durable_writes:
            return MergeResult(
                values=merged,
                thread_id=thread_id,
                checkpoint_id=PLACEHOLDER_CHECKPOINT_ID,
                durable=False,
            )

        new_config = await self.executor.aupdate_state(  # type: ignore[attr-defined]
            _thread_config(thread_id), dict(patch), as_node=self.as_node
        )
        persisted = await self.read(thread_id)
        checkpoint_id = _checkpoint_id(new_config) or persisted.checkpoint_id or PLACEHOLDER_CHECKPOINT_ID
        logger.info("Persisted state merge on thread %s as checkpoint %s", thread_id, checkpoint_id)
        return MergeResult(values=persisted.values, thread_id=thread_id, checkpoint_id=checkpoint_id, durable=True)
