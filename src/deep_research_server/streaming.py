"""Server-Sent-Events framing of a run's event sequence."""

from __future__ import annotations

import dataclasses
import enum
import json
import logging
from datetime import date, datetime
from typing import Any, AsyncIterator

from pydantic import BaseModel

from .executor import StreamEvent

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

END_EVENT = "end"
ERROR_EVENT = "error"


def to_jsonable(value: Any) -> Any:
    """Recursively convert graph payloads (messages, snapshots, interrupts) to JSON types."""

    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, BaseModel):
        return to_jsonable(value.model_dump())
    if hasattr(value, "_asdict") and isinstance(value, tuple):
        return to_jsonable(value._asdict())
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(item) for item in value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable({field.name: getattr(value, field.name) for field in dataclasses.fields(value)})
    if isinstance(value, enum.Enum):
        return to_jsonable(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def serialize_payload(payload: Any) -> str:
    return json.dumps(to_jsonable(payload), ensure_ascii=False)


def format_sse(event: str, data: str) -> str:
    return f"event: {event}\ndata: {data}\n\n"


class StreamState(str, enum.Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class EventFramer:
    """Write one SSE frame per event, then exactly one ``end`` or ``error`` frame.

    Frames are produced strictly in arrival order from a single consumer. Once
    a terminal frame has been produced nothing else is emitted, and the framer
    never retries: if the transport stops consuming, the source is closed.
    """

    def __init__(self, events: AsyncIterator[StreamEvent], *, thread_id: str | None = None) -> None:
        self._events = events
        self.thread_id = thread_id
        self.state = StreamState.IDLE
        self.frames_sent = 0

    def __aiter__(self) -> AsyncIterator[str]:
        return self.frames()

    async def frames(self) -> AsyncIterator[str]:
        if self.state is not StreamState.IDLE:
            raise RuntimeError(f"Event stream already consumed (state={self.state.value})")
        self.state = StreamState.STREAMING
        try:
            try:
                async for event in self._events:
                    frame = format_sse(event.channel, serialize_payload(event.payload))
                    self.frames_sent += 1
                    yield frame
            except Exception as exc:
                self.state = StreamState.FAILED
                logger.exception("Streaming error on thread %s", self.thread_id)
                yield format_sse(ERROR_EVENT, serialize_payload({"message": str(exc)}))
                return
            self.state = StreamState.COMPLETED
            yield format_sse(END_EVENT, "{}")
        finally:
            aclose = getattr(self._events, "aclose", None)
            if aclose is not None:
                await aclose()
