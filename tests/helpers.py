"""Shared test helpers: scripted executors and models, SSE parsing, tool context."""

from __future__ import annotations

import inspect
import json
from typing import Any

from langchain_core.messages import AIMessage
from langchain_core.tools import StructuredTool


def invoke_with_context(tool, backend=None, thread_id: str | None = "thread-123", **kwargs):
    """Invoke a tool with _agent_context passed through (bypasses schema stripping in .invoke())."""
    args = {"_agent_context": {"thread_id": thread_id, "backend": backend}, **kwargs}
    if isinstance(tool, StructuredTool) and hasattr(tool, "func"):
        sig = inspect.signature(tool.func)
        allowed = {k for k in sig.parameters}
        filtered = {k: v for k, v in args.items() if k in allowed}
        return tool.func(**filtered)
    return tool.invoke(args)


def parse_sse(body: str) -> list[tuple[str, Any]]:
    """Split an SSE body into ``(event, decoded data)`` pairs."""
    frames = []
    for block in body.split("\n\n"):
        if not block.strip():
            continue
        event = None
        data = None
        for line in block.split("\n"):
            if line.startswith("event: "):
                event = line[len("event: "):]
            elif line.startswith("data: "):
                data = json.loads(line[len("data: "):])
        frames.append((event, data))
    return frames


async def collect(aiterable) -> list:
    return [item async for item in aiterable]


class ScriptedExecutor:
    """Executor double that replays fixed stream items, optionally failing afterwards."""

    def __init__(self, items=(), error: Exception | None = None, state_values: dict | None = None):
        self.items = list(items)
        self.error = error
        self.state_values = state_values
        self.calls: list[dict] = []
        self.closed = False
        self.produced = 0

    def astream(self, input, config=None, *, stream_mode=None, interrupt_before=None, interrupt_after=None):
        self.calls.append(
            {
                "input": input,
                "config": config,
                "stream_mode": stream_mode,
                "interrupt_before": interrupt_before,
                "interrupt_after": interrupt_after,
            }
        )
        return self._stream()

    async def _stream(self):
        try:
            for item in self.items:
                self.produced += 1
                yield item
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True

    async def aget_state(self, config):
        if self.state_values is None:
            raise RuntimeError("state store unavailable")
        return type("Snapshot", (), {"values": dict(self.state_values), "config": config, "next": ()})()


class FailingStartExecutor:
    """Executor double whose stream fails before its first item, like a misconfigured graph."""

    def __init__(self, message: str = "executor misconfigured: no model"):
        self.message = message
        self.closed = False

    def astream(self, input, config=None, **kwargs):
        return self._stream()

    async def _stream(self):
        try:
            raise ValueError(self.message)
            yield  # pragma: no cover
        finally:
            self.closed = True

    async def aget_state(self, config):
        raise ValueError(self.message)


class ScriptedChatModel:
    """Chat model double returning queued AI messages; records what it was sent."""

    def __init__(self, responses: list[AIMessage]):
        self.responses = list(responses)
        self.calls: list[list] = []
        self.bind_count = 0

    def bind_tools(self, tools):
        self.bind_count += 1
        return self

    async def ainvoke(self, messages, config=None):
        self.calls.append(list(messages))
        if not self.responses:
            return AIMessage(content="done")
        return self.responses.pop(0)
