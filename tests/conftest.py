"""
Shared test fixtures.

Embedding calls go through a deterministic in-memory provider so scoring
tests control every similarity exactly.
"""

import math
from typing import Dict, List, Optional

import pytest

from survey_scoring.core.exceptions import EmbeddingError
from survey_scoring.services.embedding_service import EmbeddingProvider, EmbeddingService


class StaticEmbeddingProvider(EmbeddingProvider):
    """Returns preset vectors; unknown text fails like a provider outage."""

    name = "static"

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None):
        self.vectors = dict(vectors or {})
        self.calls: List[str] = []

    async def encode(self, text: str) -> List[float]:
        self.calls.append(text)
        if text not in self.vectors:
            raise EmbeddingError(f"no vector for {text!r}")
        return list(self.vectors[text])


class FailingEmbeddingProvider(EmbeddingProvider):
    """Raises the given exception on every call."""

    name = "failing"

    def __init__(self, error: Exception):
        self.error = error
        self.calls = 0

    async def encode(self, text: str) -> List[float]:
        self.calls += 1
        raise self.error


def unit_vector_at(similarity: float) -> List[float]:
    """2-d unit vector whose cosine with [1, 0] is `similarity`."""
    return [similarity, math.sqrt(1 - similarity**2)]


@pytest.fixture
def static_provider():
    return StaticEmbeddingProvider()


@pytest.fixture
def embedding_service(static_provider):
    return EmbeddingService(provider=static_provider)


@pytest.fixture
def make_embedding_service():
    """Factory: EmbeddingService over a StaticEmbeddingProvider with vectors."""

    def _make(vectors: Optional[Dict[str, List[float]]] = None, **kwargs) -> EmbeddingService:
        return EmbeddingService(provider=StaticEmbeddingProvider(vectors), **kwargs)

    return _make


@pytest.fixture
def make_failing_service():
    """Factory: EmbeddingService whose provider always raises `error`."""

    def _make(error: Exception) -> EmbeddingService:
        return EmbeddingService(provider=FailingEmbeddingProvider(error))

    return _make


@pytest.fixture
def vector_at():
    """unit_vector_at as a fixture for tests that build similarity scenarios."""
    return unit_vector_at
