"""Chat API routes."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from cv_screener.api.dependencies import get_retrieval_service
from cv_screener.models.dto import ChatRequest, ChatResponse, SourceResult, StatusResponse
from cv_screener.retrieval.service import RetrievalService

router = APIRouter()


@router.post("", response_model=ChatResponse, summary="Ask a question about the CV corpus")
def chat(
    request: ChatRequest,
    service: RetrievalService = Depends(get_retrieval_service),
) -> ChatResponse:
    result = service.answer(request.message)
    return ChatResponse(
        success=result.ok,
        response=result.answer,
        sources=[
            SourceResult(
                display_name=source.display_name,
                document_id=source.document_id,
                relevance=source.relevance,
                profile=source.profile,
            )
            for source in result.sources
        ],
        timestamp=datetime.now(timezone.utc),
        error=result.error,
    )


@router.get("/status", response_model=StatusResponse, summary="Chat service status")
def chat_status(request: Request) -> StatusResponse:
    service: RetrievalService | None = getattr(request.app.state, "service", None)
    llm = service is not None and service.generator.ping()
    return StatusResponse(message="Chat service is running", llm=llm, timestamp=datetime.now(timezone.utc))


__all__ = ["router"]
