"""
Custom exception hierarchy for the survey scoring engine.

All application exceptions inherit from SurveyScoringError.
"""


class SurveyScoringError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(SurveyScoringError):
    """Invalid or missing configuration."""

    pass


# =============================================================================
# Embedding Errors
# =============================================================================


class EmbeddingError(SurveyScoringError):
    """Base for embedding provider errors.

    Raised only by providers. EmbeddingService recovers all of them and
    reports an empty embedding to its callers.
    """

    pass


class EmbeddingTimeoutError(EmbeddingError):
    """Embedding call timed out."""

    pass


class EmbeddingRateLimitError(EmbeddingError):
    """Embedding provider rate limit exceeded."""

    pass


class EmbeddingResponseError(EmbeddingError):
    """Embedding provider returned an invalid or unexpected response."""

    pass
