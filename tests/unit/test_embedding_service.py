"""Tests for the fail-soft embedding service and its providers."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import numpy as np
import pytest

from survey_scoring.core.config import Settings
from survey_scoring.core.exceptions import (
    ConfigurationError,
    EmbeddingError,
    EmbeddingRateLimitError,
    EmbeddingResponseError,
    EmbeddingTimeoutError,
)
from survey_scoring.services.embedding_service import (
    EmbeddingCache,
    EmbeddingService,
    OpenAIEmbeddingProvider,
    SentenceTransformerProvider,
    create_embedding_provider,
    create_embedding_service,
)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestEmbeddingService:
    """embed() never raises and returns [] when no vector is available."""

    async def test_returns_provider_vector(self, make_embedding_service):
        service = make_embedding_service({"hello": [0.1, 0.2]})
        assert await service.embed("hello") == [0.1, 0.2]

    @pytest.mark.parametrize("text", ["", None, 123, ["hello"]])
    async def test_empty_or_non_string_skips_provider(self, make_embedding_service, text):
        service = make_embedding_service({"hello": [0.1]})
        assert await service.embed(text) == []
        assert service.provider.calls == []

    async def test_truncates_long_text(self, make_embedding_service):
        service = make_embedding_service({"abcdefghij": [1.0]}, max_chars=10)
        assert await service.embed("abcdefghijklmnop") == [1.0]
        assert service.provider.calls == ["abcdefghij"]

    @pytest.mark.parametrize(
        "error",
        [
            EmbeddingTimeoutError("timeout"),
            EmbeddingRateLimitError("429"),
            EmbeddingResponseError("bad body"),
        ],
    )
    async def test_provider_errors_become_empty(self, make_failing_service, error):
        service = make_failing_service(error)
        assert await service.embed("hello") == []

    async def test_unexpected_provider_crash_becomes_empty(self, make_failing_service):
        service = make_failing_service(RuntimeError("boom"))
        assert await service.embed("hello") == []

    async def test_try_embed_reports_error(self, make_failing_service):
        result = await make_failing_service(EmbeddingTimeoutError("timed out")).try_embed("hi")
        assert not result.ok
        assert result.embedding == []
        assert result.error == "timed out"

    async def test_try_embed_success(self, make_embedding_service):
        result = await make_embedding_service({"hi": [1.0]}).try_embed("hi")
        assert result.ok
        assert result.error is None

    async def test_empty_vector_from_provider(self, make_embedding_service):
        service = make_embedding_service({"hi": []})
        result = await service.try_embed("hi")
        assert not result.ok
        assert await service.embed("hi") == []

    async def test_no_retry(self, make_failing_service):
        service = make_failing_service(EmbeddingError("down"))
        await service.embed("hello")
        assert service.provider.calls == 1


class TestEmbeddingCache:
    async def test_cache_hit_skips_provider(self, make_embedding_service):
        service = make_embedding_service(
            {"hello": [1.0]}, cache=EmbeddingCache(ttl_seconds=60)
        )
        await service.embed("hello")
        await service.embed("hello")
        assert service.provider.calls == ["hello"]

    async def test_entries_expire(self, make_embedding_service):
        clock = FakeClock()
        service = make_embedding_service(
            {"hello": [1.0]}, cache=EmbeddingCache(ttl_seconds=60, clock=clock)
        )
        await service.embed("hello")
        clock.now = 61.0
        await service.embed("hello")
        assert service.provider.calls == ["hello", "hello"]

    async def test_failures_not_cached(self, make_failing_service):
        service = make_failing_service(EmbeddingError("down"))
        service.cache = EmbeddingCache(ttl_seconds=60)
        await service.embed("hello")
        await service.embed("hello")
        assert service.provider.calls == 2
        assert len(service.cache) == 0

    async def test_clear_cache(self, make_embedding_service):
        cache = EmbeddingCache(ttl_seconds=60)
        service = make_embedding_service({"hello": [1.0]}, cache=cache)
        await service.embed("hello")
        service.clear_cache()
        assert len(cache) == 0

    def test_clear_cache_without_cache(self, make_embedding_service):
        make_embedding_service().clear_cache()

    def test_ttl_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            EmbeddingCache(ttl_seconds=0)


class TestSentenceTransformerProvider:
    async def test_encode_converts_to_floats(self):
        model = MagicMock()
        model.encode.return_value = np.array([0.5, 0.25], dtype=np.float32)
        provider = SentenceTransformerProvider(model=model)

        assert await provider.encode("hello") == [0.5, 0.25]
        model.encode.assert_called_once_with("hello")

    async def test_model_failure_raises_embedding_error(self):
        model = MagicMock()
        model.encode.side_effect = RuntimeError("CUDA out of memory")
        provider = SentenceTransformerProvider(model=model)

        with pytest.raises(EmbeddingError):
            await provider.encode("hello")

    async def test_service_recovers_model_failure(self):
        model = MagicMock()
        model.encode.side_effect = RuntimeError("CUDA out of memory")
        service = EmbeddingService(provider=SentenceTransformerProvider(model=model))
        assert await service.embed("hello") == []


def _mock_async_client(MockClient, post_result=None, post_error=None):
    mock_client = AsyncMock()
    if post_error is not None:
        mock_client.post.side_effect = post_error
    else:
        mock_client.post.return_value = post_result
    MockClient.return_value.__aenter__.return_value = mock_client
    return mock_client


def _response(json_body):
    response = MagicMock()
    response.json.return_value = json_body
    response.raise_for_status = MagicMock()
    return response


class TestOpenAIEmbeddingProvider:
    def test_init_without_api_key_raises(self):
        with patch("survey_scoring.services.embedding_service.default_settings") as mock_settings:
            mock_settings.openai_api_key = None
            mock_settings.openai_base_url = "https://api.openai.com/v1"
            mock_settings.embedding_timeout = 10.0
            with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
                OpenAIEmbeddingProvider()

    async def test_encode_success(self):
        body = {"data": [{"embedding": [0.1, 0.2, 0.3]}], "model": "text-embedding-3-small"}
        with patch("httpx.AsyncClient") as MockClient:
            mock_client = _mock_async_client(MockClient, post_result=_response(body))
            provider = OpenAIEmbeddingProvider(api_key="test-key")

            assert await provider.encode("hello") == [0.1, 0.2, 0.3]

            call_args = mock_client.post.call_args
            assert call_args.args[0] == "https://api.openai.com/v1/embeddings"
            assert call_args.kwargs["json"] == {
                "model": "text-embedding-3-small",
                "input": "hello",
            }
            assert call_args.kwargs["headers"]["authorization"] == "Bearer test-key"

    async def test_timeout(self):
        with patch("httpx.AsyncClient") as MockClient:
            _mock_async_client(MockClient, post_error=httpx.TimeoutException("slow"))
            provider = OpenAIEmbeddingProvider(api_key="test-key")
            with pytest.raises(EmbeddingTimeoutError):
                await provider.encode("hello")

    async def test_rate_limit(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        error = httpx.HTTPStatusError(
            "rate limited", request=request, response=httpx.Response(429, request=request)
        )
        response = _response({})
        response.raise_for_status.side_effect = error
        with patch("httpx.AsyncClient") as MockClient:
            _mock_async_client(MockClient, post_result=response)
            provider = OpenAIEmbeddingProvider(api_key="test-key")
            with pytest.raises(EmbeddingRateLimitError):
                await provider.encode("hello")

    async def test_server_error(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        error = httpx.HTTPStatusError(
            "server error", request=request, response=httpx.Response(500, request=request)
        )
        response = _response({})
        response.raise_for_status.side_effect = error
        with patch("httpx.AsyncClient") as MockClient:
            _mock_async_client(MockClient, post_result=response)
            provider = OpenAIEmbeddingProvider(api_key="test-key")
            with pytest.raises(EmbeddingError, match="HTTP 500"):
                await provider.encode("hello")

    @pytest.mark.parametrize(
        "body", [{}, {"data": []}, {"data": [{"embedding": []}]}, {"data": [{"embedding": ["x"]}]}]
    )
    async def test_malformed_response(self, body):
        with patch("httpx.AsyncClient") as MockClient:
            _mock_async_client(MockClient, post_result=_response(body))
            provider = OpenAIEmbeddingProvider(api_key="test-key")
            with pytest.raises(EmbeddingResponseError):
                await provider.encode("hello")

    async def test_service_recovers_network_failure(self):
        with patch("httpx.AsyncClient") as MockClient:
            _mock_async_client(MockClient, post_error=httpx.ConnectError("refused"))
            service = EmbeddingService(provider=OpenAIEmbeddingProvider(api_key="test-key"))
            assert await service.embed("hello") == []


class TestFactories:
    def test_local_provider(self):
        provider = create_embedding_provider(Settings(embedding_provider="local"))
        assert isinstance(provider, SentenceTransformerProvider)
        assert provider.model_name == "all-MiniLM-L6-v2"

    def test_openai_provider(self):
        provider = create_embedding_provider(
            Settings(embedding_provider="openai", openai_api_key="k", embedding_model="custom")
        )
        assert isinstance(provider, OpenAIEmbeddingProvider)
        assert provider.model == "custom"

    def test_service_from_settings(self):
        service = create_embedding_service(
            Settings(embedding_max_chars=100, embedding_cache_ttl_seconds=30)
        )
        assert service.max_chars == 100
        assert service.cache is not None
        assert service.cache.ttl_seconds == 30

    def test_service_without_cache(self):
        assert create_embedding_service(Settings()).cache is None
