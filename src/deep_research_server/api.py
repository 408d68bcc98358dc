from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, StreamingResponse

from .config import Settings, get_settings
from .errors import ExecutorStartError
from .executor import Executor, ExecutorAdapter
from .run_request import normalize_run_request, parse_run_options
from .schemas import ErrorResponse, HealthResponse, StateUpdateResponse, ThreadStateResponse
from .state import StateMergeShim
from .streaming import SSE_HEADERS, EventFramer, to_jsonable

router = APIRouter()

logger = logging.getLogger(__name__)


def get_executor(request: Request) -> Executor:
    executor = getattr(request.app.state, "graph", None)
    if executor is None:
        raise ExecutorStartError("Agent graph is not initialised")
    return executor


async def _read_json(request: Request) -> Any:
    # Unparseable bodies are treated as empty, which means a stateless continuation
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Ignoring request body that is not valid JSON on %s", request.url.path)
        return {}


def _error_response(error: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=error, details=str(exc)).model_dump(),
    )


@router.get("/healthz", response_model=HealthResponse)
def healthcheck() -> HealthResponse:
    return HealthResponse()


@router.post("/threads/{thread_id}/runs/stream")
async def stream_run(
    thread_id: str,
    request: Request,
    settings: Settings = Depends(get_settings),
):
    """Start one run on the thread and stream its events as SSE.

    A run that fails before its first event is a JSON 500. Once streaming has
    begun the status is 200 regardless of outcome; the terminal ``end`` or
    ``error`` frame is authoritative.
    """
    body = await _read_json(request)
    try:
        executor = get_executor(request)
        run_request = normalize_run_request(body)
        options = parse_run_options(body, thread_id, settings)
        events = await ExecutorAdapter(executor).start(thread_id, run_request, options)
    except Exception as exc:
        logger.exception("Agent initialization/run error on thread %s", thread_id)
        return _error_response("Failed to start agent run.", exc)

    return StreamingResponse(
        EventFramer(events, thread_id=thread_id),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/threads/{thread_id}/state", response_model=StateUpdateResponse)
async def update_state(
    thread_id: str,
    request: Request,
    settings: Settings = Depends(get_settings),
):
    body = await _read_json(request)
    values = body.get("values") if isinstance(body, Mapping) else None
    try:
        shim = StateMergeShim(get_executor(request), durable_writes=settings.durable_state_merge)
        result = await shim.merge(thread_id, {} if values is None else values)
    except Exception as exc:
        logger.exception("Error updating agent state on thread %s", thread_id)
        return _error_response("Failed to update agent state.", exc)

    return StateUpdateResponse(
        values=to_jsonable(result.values),
        thread_id=result.thread_id,
        checkpoint_id=result.checkpoint_id,
        durable=result.durable,
    )


@router.get("/threads/{thread_id}/state", response_model=ThreadStateResponse)
async def read_state(thread_id: str, request: Request):
    try:
        thread_state = await StateMergeShim(get_executor(request)).read(thread_id)
    except Exception as exc:
        logger.exception("Error reading agent state on thread %s", thread_id)
        return _error_response("Failed to read agent state.", exc)

    return ThreadStateResponse(
        values=to_jsonable(thread_state.values),
        thread_id=thread_state.thread_id,
        checkpoint_id=thread_state.checkpoint_id,
        next=thread_state.next,
    )
