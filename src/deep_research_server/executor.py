"""Adapter between a run request and the graph executor's output channels.

Any object with LangGraph's ``astream``/``aget_state`` surface can back a run:
the compiled research graph, a graph built in a test, or a remote client. The
adapter starts exactly one execution per call and turns its output into a
single sequence of ``(channel, payload)`` events in production order.

Runs on the same thread are not serialized here. Two concurrent runs both write
checkpoints for the thread and the last write wins; callers that need
exclusive runs must coordinate before calling :meth:`ExecutorAdapter.start`.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, NamedTuple, Protocol, runtime_checkable

from langchain_core.runnables import RunnableConfig
from langgraph.errors import GraphRecursionError

from .errors import ExecutorStartError, RunExceeded
from .run_request import RunOptions, RunRequest, to_graph_input

logger = logging.getLogger(__name__)

UNTAGGED_CHANNEL = "data"

_NOTHING = object()


class StreamEvent(NamedTuple):
    channel: str
    payload: Any


@runtime_checkable
class Executor(Protocol):
    def astream(
        self,
        input: Any,
        config: RunnableConfig | None = None,
        *,
        stream_mode: Any = None,
        interrupt_before: Any = None,
        interrupt_after: Any = None,
    ) -> AsyncIterator[Any]: ...

    async def aget_state(self, config: RunnableConfig) -> Any: ...


def supports_state_writes(executor: Any) -> bool:
    """Whether the executor can persist a state patch as a new checkpoint."""

    return callable(getattr(executor, "aupdate_state", None))


def tag_event(item: Any) -> StreamEvent:
    # Multi-mode streams yield (mode, chunk); anything else is untagged
    if isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], str):
        return StreamEvent(item[0], item[1])
    return StreamEvent(UNTAGGED_CHANNEL, item)


class ExecutorAdapter:
    def __init__(self, executor: Executor) -> None:
        self.executor = executor

    def build_config(self, thread_id: str, options: RunOptions) -> RunnableConfig:
        configurable = {**(options.config.get("configurable") or {}), "thread_id": thread_id}
        return {**options.config, "configurable": configurable, "recursion_limit": options.recursion_limit}

    async def start(self, thread_id: str, request: RunRequest, options: RunOptions) -> AsyncIterator[StreamEvent]:
        """Start one execution and return its live event sequence.

        The executor's stream is lazy, so the first item is pulled here: a run
        that cannot produce anything fails before a response is committed.

        Raises:
            ExecutorStartError: If the executor fails before producing its
                first event.
        """

        graph_input = to_graph_input(request)
        config = self.build_config(thread_id, options)
        logger.info(
            "Starting %s run on thread %s (modes=%s, recursion_limit=%d)",
            type(request).__name__,
            thread_id,
            ",".join(options.stream_mode),
            options.recursion_limit,
        )
        stream = None
        first: Any = _NOTHING
        pending: RunExceeded | None = None
        try:
            # Always a list so every item arrives as a (mode, chunk) pair
            stream = self.executor.astream(
                graph_input,
                config,
                stream_mode=list(options.stream_mode),
                interrupt_before=options.interrupt_before,
                interrupt_after=options.interrupt_after,
            )
            first = await stream.__anext__()
        except StopAsyncIteration:
            pass
        except GraphRecursionError as exc:
            logger.warning("Run on thread %s hit recursion limit %d", thread_id, options.recursion_limit)
            pending = RunExceeded(options.recursion_limit)
            pending.__cause__ = exc
        except Exception as exc:
            await _close(stream)
            raise ExecutorStartError(str(exc)) from exc
        return self._events(stream, first, pending, thread_id, options.recursion_limit)

    async def _events(
        self,
        stream: AsyncIterator[Any],
        first: Any,
        pending: RunExceeded | None,
        thread_id: str,
        limit: int,
    ) -> AsyncIterator[StreamEvent]:
        count = 0
        try:
            if pending is not None:
                raise pending
            if first is _NOTHING:
                return
            count += 1
            yield tag_event(first)
            async for item in stream:
                count += 1
                yield tag_event(item)
        except GraphRecursionError as exc:
            logger.warning("Run on thread %s hit recursion limit %d", thread_id, limit)
            raise RunExceeded(limit) from exc
        finally:
            await _close(stream)
            logger.info("Run on thread %s stopped after %d events", thread_id, count)


async def _close(stream: Any) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()
