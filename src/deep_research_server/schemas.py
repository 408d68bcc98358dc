from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class StateUpdateResponse(BaseModel):
    values: dict[str, Any]
    thread_id: str
    checkpoint_id: str = Field(..., description="Placeholder token unless durable is true")
    durable: bool = Field(
        default=False, description="Whether the merged values were written as a new checkpoint"
    )


class ThreadStateResponse(BaseModel):
    values: dict[str, Any]
    thread_id: str
    checkpoint_id: str | None = None
    next: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    details: str


class HealthResponse(BaseModel):
    status: str = "ok"
