"""Index lifecycle and metrics routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from cv_screener.api.dependencies import get_app_settings, get_retrieval_service
from cv_screener.core.config import Settings
from cv_screener.core.errors import RebuildInProgressError, ScreenerError
from cv_screener.core.metrics import metrics_response
from cv_screener.ingest.resume import load_corpus
from cv_screener.models.dto import ClearResponse, IndexInfoResponse, RebuildResponse
from cv_screener.retrieval.service import RetrievalService

router = APIRouter()


@router.get("/api/index", response_model=IndexInfoResponse, summary="Index size")
def index_info(service: RetrievalService = Depends(get_retrieval_service)) -> IndexInfoResponse:
    return IndexInfoResponse(document_count=service.index_size())


@router.post("/api/index/rebuild", response_model=RebuildResponse, summary="Rebuild the index from the corpus")
def rebuild_index(
    service: RetrievalService = Depends(get_retrieval_service),
    settings: Settings = Depends(get_app_settings),
) -> RebuildResponse:
    try:
        documents = load_corpus(settings.corpus_path)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=f"Corpus not found at {settings.corpus_path}")
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    try:
        report = service.rebuild_index(documents)
    except RebuildInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ScreenerError as exc:
        raise HTTPException(status_code=502, detail=f"Index rebuild failed: {exc}")
    return RebuildResponse(**report.to_dict())


@router.delete("/api/index", response_model=ClearResponse, summary="Delete the persisted index")
def clear_index(service: RetrievalService = Depends(get_retrieval_service)) -> ClearResponse:
    service.clear_index()
    return ClearResponse()


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
