"""Error taxonomy shared by ingestion and retrieval."""

from __future__ import annotations


class ScreenerError(Exception):
    """Base class for all CV Screener failures."""


class ConfigurationError(ScreenerError):
    """No usable provider credentials or an invalid provider selection."""


class EmbeddingError(ScreenerError):
    """The embedding provider call failed or returned an unusable payload."""


class GenerationError(ScreenerError):
    """The language model call failed or returned an unusable payload."""


class StoreError(ScreenerError):
    """Persisted index could not be read or decoded."""


class DimensionMismatchError(ScreenerError):
    """A vector's length disagrees with the index dimensionality."""

    def __init__(self, expected: int, actual: int, context: str = "vector") -> None:
        super().__init__(f"{context} has dimension {actual}, expected {expected}")
        self.expected = expected
        self.actual = actual


class RebuildInProgressError(ScreenerError):
    """Another index rebuild is already running on this service."""


class EmptyIndexWarning(UserWarning):
    """Search was attempted against an index with no entries."""


__all__ = [
    "ScreenerError",
    "ConfigurationError",
    "EmbeddingError",
    "GenerationError",
    "StoreError",
    "DimensionMismatchError",
    "RebuildInProgressError",
    "EmptyIndexWarning",
]
