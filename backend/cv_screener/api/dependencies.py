"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import HTTPException, Request

from cv_screener.core.config import Settings
from cv_screener.retrieval.service import RetrievalService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_retrieval_service(request: Request) -> RetrievalService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        detail = getattr(request.app.state, "startup_error", None) or "Retrieval service unavailable"
        raise HTTPException(status_code=503, detail=detail)
    return service


__all__ = ["get_app_settings", "get_retrieval_service"]
