"""
Text embedding service with fail-soft provider calls.

Turns text into an embedding vector through a pluggable provider:
- local: sentence-transformers (all-MiniLM-L6-v2, 384-dim), lazily loaded
- openai: OpenAI embeddings API over httpx (text-embedding-3-small, 1536-dim)

Embedding failures must never block survey progression. Providers raise
EmbeddingError subclasses; EmbeddingService.try_embed() turns every outcome
into an EmbeddingResult, and EmbeddingService.embed() collapses a failed
result to an empty list. Callers treat an empty embedding as "similarity
undefined", never as a fatal condition. There are no retries.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import structlog

from survey_scoring.core.config import Settings, settings as default_settings
from survey_scoring.core.exceptions import (
    ConfigurationError,
    EmbeddingError,
    EmbeddingRateLimitError,
    EmbeddingResponseError,
    EmbeddingTimeoutError,
)
from survey_scoring.domain.models.questions import Embedding

logger = structlog.get_logger(__name__)

LOCAL_EMBEDDING_MODEL = "all-MiniLM-L6-v2"
OPENAI_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_MAX_CHARS = 8000


@dataclass
class EmbeddingResult:
    """Explicit outcome of one embedding call."""

    embedding: Embedding = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and len(self.embedding) > 0


# =============================================================================
# Providers
# =============================================================================


class EmbeddingProvider(ABC):
    """Abstract base for embedding providers."""

    name: str = "provider"

    @abstractmethod
    async def encode(self, text: str) -> Embedding:
        """
        Encode text to an embedding vector.

        Args:
            text: Non-empty input text, already truncated by the caller

        Returns:
            List of floats (fixed dimensionality per model)

        Raises:
            EmbeddingError: On any provider failure
        """
        pass


class SentenceTransformerProvider(EmbeddingProvider):
    """
    Local embeddings via sentence-transformers.

    The model is loaded on first use to avoid a startup penalty for
    processes that never compute an embedding.
    """

    name = "local"

    def __init__(self, model_name: str = LOCAL_EMBEDDING_MODEL, model: Any = None):
        self.model_name = model_name
        self._model: Optional[Any] = model

    @property
    def model(self) -> Any:
        """Lazy-load the SentenceTransformer model on first access."""
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            logger.info("loading_embedding_model", model=self.model_name)
            self._model = SentenceTransformer(self.model_name)
            logger.info("embedding_model_loaded", model=self.model_name)
        return self._model

    async def encode(self, text: str) -> Embedding:
        try:
            vector = self.model.encode(text)
        except Exception as e:
            raise EmbeddingError(f"{self.model_name} failed to encode text: {e}") from e
        return [float(x) for x in vector]


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI embeddings API client.

    Uses httpx for async HTTP calls to the /embeddings endpoint.
    """

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = OPENAI_EMBEDDING_MODEL,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize OpenAI embedding client.

        Args:
            api_key: API key (defaults to settings.openai_api_key)
            model: Embedding model ID
            base_url: API base URL (defaults to settings.openai_base_url)
            timeout: Request timeout in seconds (defaults to settings.embedding_timeout)

        Raises:
            ConfigurationError: If API key is not configured
        """
        self.api_key = api_key or default_settings.openai_api_key
        self.model = model
        self.base_url = (base_url or default_settings.openai_base_url).rstrip("/")
        self.timeout = timeout or default_settings.embedding_timeout

        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY not configured. Set it in .env.")

        logger.info(
            "openai_embedding_client_initialized",
            model=self.model,
            timeout=self.timeout,
        )

    async def encode(self, text: str) -> Embedding:
        headers = {
            "authorization": f"Bearer {self.api_key}",
            "content-type": "application/json",
        }
        payload = {"model": self.model, "input": text}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/embeddings",
                    headers=headers,
                    json=payload,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise EmbeddingTimeoutError(
                f"Embedding call timed out (timeout={self.timeout}s)"
            ) from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code == 429:
                raise EmbeddingRateLimitError("Embedding rate limit exceeded (429)") from e
            raise EmbeddingError(f"Embedding API error: HTTP {status_code}") from e
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e
        except ValueError as e:
            raise EmbeddingResponseError("Embedding response is not valid JSON") from e

        return _parse_openai_embedding(data)


def _parse_openai_embedding(data: Any) -> Embedding:
    """Pull data[0].embedding out of an embeddings API response."""
    try:
        vector = data["data"][0]["embedding"]
        embedding = [float(x) for x in vector]
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise EmbeddingResponseError("Malformed embedding response") from e

    if not embedding:
        raise EmbeddingResponseError("Embedding response contained an empty vector")
    return embedding


# =============================================================================
# Cache
# =============================================================================


class EmbeddingCache:
    """
    In-memory embedding cache with a TTL.

    Owned by whoever constructs the EmbeddingService, never module-level, so
    separate services (e.g. per tenant) never share entries. The clock is
    injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ConfigurationError("Embedding cache TTL must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Embedding]] = {}

    def get(self, text: str) -> Optional[Embedding]:
        entry = self._entries.get(text)
        if entry is None:
            return None
        stored_at, embedding = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[text]
            return None
        return embedding

    def set(self, text: str, embedding: Embedding) -> None:
        self._entries[text] = (self._clock(), embedding)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# Service
# =============================================================================


class EmbeddingService:
    """
    Fail-soft embedding adapter.

    Thread Safety:
        Stateless apart from the optional injected cache. One provider call
        per embed() on a cache miss; callers apply their own timeouts.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        max_chars: int = DEFAULT_MAX_CHARS,
        cache: Optional[EmbeddingCache] = None,
    ):
        self.provider = provider
        self.max_chars = max_chars
        self.cache = cache

    async def try_embed(self, text: Any) -> EmbeddingResult:
        """
        Embed text and report the outcome explicitly.

        Args:
            text: Input text; non-string or empty input short-circuits

        Returns:
            EmbeddingResult with the vector, or an empty vector and the error
        """
        if not isinstance(text, str) or not text:
            return EmbeddingResult(error="empty_input")

        text = text[: self.max_chars]

        if self.cache is not None:
            cached = self.cache.get(text)
            if cached is not None:
                logger.debug("embedding_cache_hit", text_length=len(text))
                return EmbeddingResult(embedding=cached)

        start = time.perf_counter()
        try:
            embedding = await self.provider.encode(text)
        except EmbeddingError as e:
            logger.warning(
                "embedding_failed",
                provider=self.provider.name,
                error_type=type(e).__name__,
                error=str(e),
                text_length=len(text),
            )
            return EmbeddingResult(error=str(e))
        except Exception as e:
            logger.error(
                "embedding_provider_crashed",
                provider=self.provider.name,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            return EmbeddingResult(error=str(e) or type(e).__name__)

        if not embedding:
            logger.warning("embedding_empty", provider=self.provider.name)
            return EmbeddingResult(error="empty_embedding")

        if self.cache is not None:
            self.cache.set(text, embedding)

        logger.debug(
            "embedding_computed",
            provider=self.provider.name,
            text_length=len(text),
            dimensions=len(embedding),
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return EmbeddingResult(embedding=embedding)

    async def embed(self, text: Any) -> Embedding:
        """
        Embed text, returning [] on empty input or any provider failure.

        Example:
            >>> service = create_embedding_service()
            >>> embedding = await service.embed("What is the budget?")
            >>> len(embedding)
            384
        """
        result = await self.try_embed(text)
        return result.embedding if result.ok else []

    def clear_cache(self) -> None:
        """Drop all cached embeddings (no-op without a cache)."""
        if self.cache is None:
            return
        cleared_count = self.cache.clear()
        logger.info("embedding_cache_cleared", count=cleared_count)


def create_embedding_provider(config: Optional[Settings] = None) -> EmbeddingProvider:
    """
    Build the provider selected by settings.embedding_provider.

    Raises:
        ConfigurationError: If the provider is unknown or misconfigured
    """
    config = config or default_settings

    if config.embedding_provider == "local":
        return SentenceTransformerProvider(
            model_name=config.embedding_model or LOCAL_EMBEDDING_MODEL
        )
    if config.embedding_provider == "openai":
        return OpenAIEmbeddingProvider(
            api_key=config.openai_api_key,
            model=config.embedding_model or OPENAI_EMBEDDING_MODEL,
            base_url=config.openai_base_url,
            timeout=config.embedding_timeout,
        )
    raise ConfigurationError(f"Unknown embedding provider: {config.embedding_provider}")


def create_embedding_service(config: Optional[Settings] = None) -> EmbeddingService:
    """Factory for an EmbeddingService wired from settings."""
    config = config or default_settings

    cache = None
    if config.embedding_cache_ttl_seconds:
        cache = EmbeddingCache(ttl_seconds=config.embedding_cache_ttl_seconds)

    return EmbeddingService(
        provider=create_embedding_provider(config),
        max_chars=config.embedding_max_chars,
        cache=cache,
    )
