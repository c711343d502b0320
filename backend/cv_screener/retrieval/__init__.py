"""Retrieval orchestration components."""

from .similarity import RetrievalResult, cosine_similarity, exhaustive, search
from .service import Answer, RetrievalService, Source, build_service

__all__ = [
    "RetrievalResult",
    "cosine_similarity",
    "search",
    "exhaustive",
    "Answer",
    "Source",
    "RetrievalService",
    "build_service",
]
