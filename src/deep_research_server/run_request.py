"""Turn a raw run request body into exactly one kind of run.

The request shape is lenient on purpose: a body that names nothing runnable is
a stateless continuation from the thread's last checkpoint, and a message with
an unknown role or malformed fields is kept as a human message carrying the
raw JSON rather than rejected.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence, Union, get_args

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.runnables import RunnableConfig
from langgraph.types import Command, StreamMode
from pydantic import ValidationError

from .config import Settings

logger = logging.getLogger(__name__)

SUPPORTED_STREAM_MODES: frozenset[str] = frozenset(get_args(StreamMode))


@dataclass(frozen=True)
class NewInput:
    messages: list[BaseMessage]


@dataclass(frozen=True)
class ResumeCommand:
    resume: Any


@dataclass(frozen=True)
class GotoCommand:
    goto: str | list[str]
    update: Any = None


@dataclass(frozen=True)
class StatelessContinue:
    pass


RunRequest = Union[NewInput, ResumeCommand, GotoCommand, StatelessContinue]


@dataclass
class RunOptions:
    """Everything besides the input that shapes one execution."""

    config: RunnableConfig
    stream_mode: list[str]
    interrupt_before: list[str] | None = None
    interrupt_after: list[str] | None = None
    recursion_limit: int = 50


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def _coerce_content(value: Any) -> str | list:
    if isinstance(value, (str, list)):
        return value
    if value is None:
        return ""
    return json.dumps(value, ensure_ascii=False)


def _tool_calls(raw: Any) -> list[dict[str, Any]]:
    if not isinstance(raw, (list, tuple)):
        return []
    calls = []
    for call in raw:
        if not isinstance(call, Mapping):
            continue
        args = call.get("args")
        calls.append(
            {
                "name": str(call.get("name", "")),
                "args": dict(args) if isinstance(args, Mapping) else {},
                "id": call.get("id"),
                "type": "tool_call",
            }
        )
    return calls


def _raw_human(raw: Any) -> HumanMessage:
    return HumanMessage(content=json.dumps(raw, ensure_ascii=False, default=str))


def _typed_message(kind: Any, raw: Mapping[str, Any]) -> BaseMessage | None:
    content = _coerce_content(raw.get("content"))
    name = raw.get("name")
    message_id = raw.get("id")

    if kind == "human":
        return HumanMessage(content=content, name=name, id=message_id)
    if kind == "ai":
        return AIMessage(content=content, name=name, id=message_id, tool_calls=_tool_calls(raw.get("tool_calls")))
    if kind == "tool":
        return ToolMessage(
            content=content,
            name=name,
            id=message_id,
            tool_call_id=raw.get("tool_call_id") or "unknown",
        )
    if kind == "system":
        return SystemMessage(content=content, name=name, id=message_id)
    return None


def to_langchain_message(raw: Any) -> BaseMessage:
    """Convert one wire message; unknown or malformed shapes become a human message with the raw JSON."""

    if not isinstance(raw, Mapping):
        return _raw_human(raw)

    kind = raw.get("type")
    try:
        message = _typed_message(kind, raw)
    except (ValidationError, ValueError, TypeError) as exc:
        logger.debug("Malformed %r message (%s); forwarding as human message", kind, exc)
        return _raw_human(raw)
    if message is None:
        logger.debug("Unrecognised message type %r; forwarding as human message", kind)
        return _raw_human(raw)
    return message


def to_langchain_messages(raw: Iterable[Any]) -> list[BaseMessage]:
    return [to_langchain_message(item) for item in raw]


def normalize_run_request(body: Any) -> RunRequest:
    """Pick the single run variant a request body describes.

    Precedence: ``command.resume``, then ``command.goto``, then
    ``input.messages``; anything else is a stateless continuation.
    """

    if not isinstance(body, Mapping):
        return StatelessContinue()

    command = body.get("command")
    if isinstance(command, Mapping):
        if not _is_empty(command.get("resume")):
            return ResumeCommand(resume=command["resume"])
        goto = command.get("goto")
        if not _is_empty(goto):
            return GotoCommand(goto=list(goto) if isinstance(goto, (list, tuple)) else goto, update=command.get("update"))

    payload = body.get("input")
    if isinstance(payload, Mapping):
        messages = payload.get("messages")
        if isinstance(messages, Sequence) and not isinstance(messages, str) and messages:
            return NewInput(messages=to_langchain_messages(messages))

    return StatelessContinue()


def to_graph_input(request: RunRequest) -> Command | dict[str, Any] | None:
    """Map a run variant onto what the graph's ``astream`` accepts."""

    if isinstance(request, ResumeCommand):
        return Command(resume=request.resume)
    if isinstance(request, GotoCommand):
        return Command(goto=request.goto, update=request.update)
    if isinstance(request, NewInput):
        return {"messages": request.messages}
    return None


def _string_list(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return None


def parse_stream_modes(value: Any, default: Sequence[str]) -> list[str]:
    requested = _string_list(value)
    if not requested:
        return list(default)
    modes: list[str] = []
    for mode in requested:
        if mode not in SUPPORTED_STREAM_MODES:
            logger.warning("Ignoring unsupported stream mode %r", mode)
            continue
        if mode not in modes:
            modes.append(mode)
    return modes or list(default)


def parse_run_options(body: Any, thread_id: str, settings: Settings) -> RunOptions:
    """Build run options from the optional request fields and settings defaults."""

    body = body if isinstance(body, Mapping) else {}
    run_config = body.get("config") if isinstance(body.get("config"), Mapping) else {}

    configurable: dict[str, Any] = {}
    if isinstance(run_config.get("configurable"), Mapping):
        configurable.update(run_config["configurable"])
    # The path thread_id wins over any thread_id the body puts in configurable
    configurable["thread_id"] = thread_id
    checkpoint_id = body.get("checkpoint_id")
    if isinstance(checkpoint_id, str) and checkpoint_id:
        configurable["checkpoint_id"] = checkpoint_id

    recursion_limit = run_config.get("recursion_limit")
    if isinstance(recursion_limit, bool) or not isinstance(recursion_limit, int) or recursion_limit <= 0:
        recursion_limit = settings.default_recursion_limit

    config: RunnableConfig = {"configurable": configurable, "recursion_limit": recursion_limit}
    return RunOptions(
        config=config,
        stream_mode=parse_stream_modes(body.get("stream_mode"), settings.stream_mode_list),
        interrupt_before=_string_list(body.get("interrupt_before")),
        interrupt_after=_string_list(body.get("interrupt_after")),
        recursion_limit=recursion_limit,
    )


__all__ = [
    "GotoCommand",
    "NewInput",
    "ResumeCommand",
    "RunOptions",
    "RunRequest",
    "StatelessContinue",
    "SUPPORTED_STREAM_MODES",
    "normalize_run_request",
    "parse_run_options",
    "parse_stream_modes",
    "to_graph_input",
    "to_langchain_message",
    "to_langchain_messages",
]
