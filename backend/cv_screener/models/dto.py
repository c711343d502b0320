"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, description="Question about the CV corpus")


class SourceResult(BaseModel):
    display_name: str
    document_id: Any
    relevance: float
    profile: dict[str, Any] = Field(default_factory=dict)


class ChatResponse(BaseModel):
    success: bool
    response: str
    sources: list[SourceResult]
    timestamp: datetime
    error: str | None = None


class StatusResponse(BaseModel):
    status: Literal["OK"] = "OK"
    message: str
    llm: bool = Field(description="Whether the language model answered a connectivity check")
    timestamp: datetime


class IndexInfoResponse(BaseModel):
    name: str = "Simple Vector Store"
    document_count: int


class RebuildResponse(BaseModel):
    documents: int
    chunks: int


class ClearResponse(BaseModel):
    status: Literal["ok"] = "ok"


__all__ = [
    "ChatRequest",
    "ChatResponse",
    "SourceResult",
    "StatusResponse",
    "IndexInfoResponse",
    "RebuildResponse",
    "ClearResponse",
]
