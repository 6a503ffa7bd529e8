"""Scoring engine wiring.

Builds every scoring component from one ScoringConfig and one shared
EmbeddingService, the way an orchestrator is expected to hold them.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from survey_scoring.core.config import ScoringConfig, Settings, load_scoring_config
from survey_scoring.services.embedding_service import (
    EmbeddingService,
    create_embedding_service,
)
from survey_scoring.services.question_selector import QuestionSelector
from survey_scoring.services.scoring.answer_quality import AnswerQualityScorer
from survey_scoring.services.scoring.calibration import ConfidenceCalibrator
from survey_scoring.services.scoring.fatigue import FatigueEstimator
from survey_scoring.services.scoring.novelty import NoveltyDetector
from survey_scoring.services.scoring.redundancy import RedundancyDetector

logger = structlog.get_logger(__name__)


@dataclass
class ScoringEngine:
    """All scoring components sharing one configuration."""

    config: ScoringConfig
    embedding_service: EmbeddingService
    answer_quality: AnswerQualityScorer
    fatigue: FatigueEstimator
    redundancy: RedundancyDetector
    novelty: NoveltyDetector
    calibrator: ConfidenceCalibrator
    selector: QuestionSelector


def create_scoring_engine(
    config: Optional[ScoringConfig] = None,
    embedding_service: Optional[EmbeddingService] = None,
    settings: Optional[Settings] = None,
) -> ScoringEngine:
    """
    Factory for a fully wired ScoringEngine.

    Args:
        config: Scoring configuration (default: load_scoring_config())
        embedding_service: Shared embedding service (default: from settings)
        settings: Settings used when building the embedding service

    Raises:
        ConfigurationError: If the config file or embedding provider is invalid
    """
    config = config or load_scoring_config()
    embedding_service = embedding_service or create_embedding_service(settings)

    quality = AnswerQualityScorer(config.answer_quality)
    fatigue = FatigueEstimator(quality_scorer=quality, config=config.fatigue)
    redundancy = RedundancyDetector(embedding_service, config.redundancy)
    novelty = NoveltyDetector(embedding_service, config.novelty)

    engine = ScoringEngine(
        config=config,
        embedding_service=embedding_service,
        answer_quality=quality,
        fatigue=fatigue,
        redundancy=redundancy,
        novelty=novelty,
        calibrator=ConfidenceCalibrator(novelty, quality_scorer=quality, config=config),
        selector=QuestionSelector(redundancy, fatigue_estimator=fatigue, config=config),
    )

    logger.info(
        "scoring_engine_created",
        embedding_provider=embedding_service.provider.name,
        reject_threshold=config.redundancy.reject_threshold,
    )
    return engine
