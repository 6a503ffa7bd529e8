"""
Application settings management.

Settings are loaded from environment variables with .env file support.
Scoring heuristics (thresholds, weights, word lists) are loaded from
config/scoring.yaml. All configuration is validated using Pydantic.
"""

from pathlib import Path
from typing import List, Literal, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from survey_scoring.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================

    scoring_config_path: Optional[Path] = Field(
        default=None,
        description="Path to scoring.yaml (default: config/scoring.yaml)",
    )

    # ==========================================================================
    # Embedding Provider
    # ==========================================================================

    embedding_provider: Literal["local", "openai"] = Field(
        default="local",
        description="local = sentence-transformers, openai = OpenAI embeddings API",
    )
    embedding_model: Optional[str] = Field(
        default=None,
        description="Override embedding model (default depends on provider)",
    )
    openai_api_key: Optional[str] = Field(
        default=None, description="OpenAI API key (required for openai provider)"
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", description="OpenAI API base URL"
    )
    embedding_max_chars: int = Field(
        default=8000,
        ge=1,
        description="Text is truncated to this many characters before embedding",
    )
    embedding_timeout: float = Field(
        default=10.0, gt=0, description="Embedding request timeout in seconds"
    )
    embedding_cache_ttl_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="TTL for the embedding cache (None = no cache)",
    )

    debug: bool = Field(default=False, description="Enable debug mode")


# ============================================================================
# Scoring Configuration (from YAML)
# ============================================================================


class RedundancyConfig(BaseModel):
    """Semantic deduplication of candidate questions."""

    reject_threshold: float = Field(
        default=0.85, ge=0.0, le=1.0, description="Hard reject at/above this similarity"
    )
    soft_threshold: float = Field(
        default=0.6, ge=0.0, le=1.0, description="Penalty starts above this similarity"
    )
    penalty_span: float = Field(
        default=0.25, gt=0.0, description="Similarity range mapped onto penalty 0..1"
    )


class AnswerQualityConfig(BaseModel):
    """Heuristic answer quality point system.

    Length and sentence bands are (minimum exclusive, points) pairs checked
    from the highest minimum down; only the first match applies.
    """

    length_bands: List[Tuple[float, float]] = Field(
        default_factory=lambda: [(100, 0.4), (50, 0.3), (20, 0.2), (5, 0.1)]
    )
    sentence_bands: List[Tuple[float, float]] = Field(
        default_factory=lambda: [(2, 0.3), (1, 0.2)]
    )
    numeric_bonus: float = 0.2
    detail_bonus: float = 0.2
    idk_penalty: float = 0.6
    short_answer_length: int = Field(default=10, ge=0)
    short_answer_penalty: float = 0.3
    idk_phrases: List[str] = Field(
        default_factory=lambda: [
            "i don't know",
            "i dont know",
            "unsure",
            "not sure",
            "n/a",
            "no idea",
        ]
    )
    detail_markers: List[str] = Field(
        default_factory=lambda: [
            "because",
            "since",
            "due to",
            "specifically",
            "example",
            "such as",
        ]
    )


class FatigueConfig(BaseModel):
    """Fatigue estimation from recent answer quality."""

    lookback: int = Field(default=3, ge=1)
    trend_weight: float = Field(default=0.3, ge=0.0)
    recent_window: int = Field(default=2, ge=1)


class InformationGainConfig(BaseModel):
    """Expected information gain of a question template."""

    critical_boost: float = Field(default=0.3, ge=0.0, le=1.0)


class NoveltyConfig(BaseModel):
    """Novelty and contradiction heuristics."""

    neutral_novelty: float = Field(
        default=0.5, ge=0.0, le=1.0, description="Novelty when embeddings are unavailable"
    )
    contradiction_novelty: float = Field(default=0.8, ge=0.0, le=1.0)
    contradiction_confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    contradiction_score: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Score returned for a likely contradiction"
    )


class CalibrationConfig(BaseModel):
    """Linear blend weights for calibrated slot confidence."""

    self_confidence_weight: float = 0.35
    validator_weight: float = 0.25
    evidence_weight: float = 0.15
    answer_quality_weight: float = 0.15
    consistency_weight: float = 0.10
    novelty_weight: float = 0.05
    novelty_floor: float = 0.3
    critical_slot_cap: float = Field(default=0.85, ge=0.0, le=1.0)
    provisional_buffer: float = Field(default=0.1, ge=0.0, le=1.0)
    default_validator_score: float = Field(default=0.5, ge=0.0, le=1.0)


class SlotThresholdsConfig(BaseModel):
    """Minimum confidence for a slot to count as filled."""

    critical: float = Field(default=0.75, ge=0.0, le=1.0)
    normal: float = Field(default=0.7, ge=0.0, le=1.0)


class SelectionConfig(BaseModel):
    """Weights for greedy next-question ranking."""

    max_turns: int = Field(default=10, ge=1)
    fatigue_lookback: int = Field(default=4, ge=1)
    coverage_weight: float = 3.0
    confidence_lift_weight: float = 2.0
    eig_weight: float = 2.0
    fatigue_penalty_weight: float = 1.2
    redundancy_penalty_weight: float = 1.5
    default_priority: float = 5.0
    topic_streak_limit: int = Field(default=2, ge=1)


class CompletionConfig(BaseModel):
    """Early-stop and brief readiness thresholds."""

    min_coverage: float = Field(default=0.75, ge=0.0, le=1.0)
    feedback_min_coverage: float = Field(default=0.85, ge=0.0, le=1.0)
    low_confidence_streak_limit: int = Field(default=2, ge=1)
    min_detail_length: int = Field(default=50, ge=0)
    low_eig_threshold: float = 0.15
    high_fatigue_threshold: float = 0.6
    low_value_eig_threshold: float = 0.1
    low_value_fatigue_threshold: float = 0.5
    feedback_fatigue_threshold: float = 0.8


class ScoringConfig(BaseModel):
    """
    Complete scoring configuration loaded from scoring.yaml.

    Every default equals the tuned production value, so an empty or missing
    file yields the reference behavior.
    """

    redundancy: RedundancyConfig = Field(default_factory=RedundancyConfig)
    answer_quality: AnswerQualityConfig = Field(default_factory=AnswerQualityConfig)
    fatigue: FatigueConfig = Field(default_factory=FatigueConfig)
    information_gain: InformationGainConfig = Field(
        default_factory=InformationGainConfig
    )
    novelty: NoveltyConfig = Field(default_factory=NoveltyConfig)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    slot_thresholds: SlotThresholdsConfig = Field(default_factory=SlotThresholdsConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    completion: CompletionConfig = Field(default_factory=CompletionConfig)

    @model_validator(mode="after")
    def check_redundancy_thresholds(self) -> "ScoringConfig":
        """Soft penalty zone must sit below the hard reject threshold."""
        if self.redundancy.soft_threshold > self.redundancy.reject_threshold:
            raise ValueError(
                "redundancy.soft_threshold must not exceed redundancy.reject_threshold"
            )
        return self


def _default_config_path() -> Optional[Path]:
    """Find config/scoring.yaml next to the project root or the working directory."""
    project_root = Path(__file__).resolve().parent.parent.parent
    for candidate in (
        project_root / "config" / "scoring.yaml",
        Path.cwd() / "config" / "scoring.yaml",
    ):
        if candidate.exists():
            return candidate
    return None


def load_scoring_config(config_path: Optional[Path] = None) -> ScoringConfig:
    """
    Load scoring configuration from YAML file.

    Args:
        config_path: Path to scoring.yaml. If None, uses
            settings.scoring_config_path or the default location.

    Returns:
        ScoringConfig with validated settings (defaults if no file exists)

    Raises:
        ConfigurationError: If the file is unreadable or fails validation
    """
    if config_path is None:
        config_path = settings.scoring_config_path or _default_config_path()

    if config_path is None:
        return ScoringConfig()

    config_path = Path(config_path).resolve()

    if not config_path.exists():
        return ScoringConfig()

    try:
        with open(str(config_path)) as f:
            config_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read {config_path}: {e}") from e

    if not config_data:
        return ScoringConfig()

    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Invalid scoring config {config_path}: expected a mapping")

    try:
        return ScoringConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid scoring config {config_path}: {e}") from e


# Global settings instance
settings = Settings()
