"""Redundancy detector - semantic deduplication of candidate questions.

Rejects near-duplicates of already asked questions and softly penalizes
questions in the "discouragement zone" between clearly distinct and clearly
duplicate. Reject and penalty come from a single max-similarity pass.
"""

from typing import Optional, Sequence

import structlog

from survey_scoring.core.config import RedundancyConfig
from survey_scoring.domain.models.questions import AskedQuestion
from survey_scoring.domain.models.scores import RedundancyResult
from survey_scoring.services.embedding_service import EmbeddingService
from survey_scoring.services.similarity import clamp01, max_similarity

logger = structlog.get_logger(__name__)


class RedundancyDetector:
    """
    Compare a candidate question against asked questions.

    Scoring:
    - max_sim >= threshold (default 0.85): reject, penalty 1.0
    - otherwise penalty = clamp01((max_sim - 0.6) / 0.25), so similarity up
      to 0.6 costs nothing and 0.6..0.85 maps linearly onto 0..1

    Asked questions without a cached embedding are skipped. If the candidate
    cannot be embedded the question is let through with no penalty.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        config: Optional[RedundancyConfig] = None,
    ):
        self.embedding_service = embedding_service
        self.config = config or RedundancyConfig()

    async def penalty(
        self,
        candidate_prompt: str,
        asked_questions: Optional[Sequence[AskedQuestion]],
        threshold: Optional[float] = None,
    ) -> RedundancyResult:
        """
        Assess how much a candidate question repeats earlier ones.

        Args:
            candidate_prompt: Text of the candidate question
            asked_questions: Previously asked questions with cached embeddings
            threshold: Hard reject similarity (defaults to config.reject_threshold)

        Returns:
            RedundancyResult with reject flag, penalty in [0, 1] and max similarity
        """
        if not asked_questions:
            return RedundancyResult()

        embedding = await self.embedding_service.embed(candidate_prompt)
        if not embedding:
            logger.debug("redundancy_unassessed", reason="candidate_not_embedded")
            return RedundancyResult()

        threshold = threshold if threshold is not None else self.config.reject_threshold
        max_sim = max_similarity(embedding, (q.embedding for q in asked_questions))

        if max_sim >= threshold:
            logger.info(
                "redundancy_rejected",
                max_similarity=round(max_sim, 4),
                threshold=threshold,
                prompt=candidate_prompt[:50],
            )
            return RedundancyResult(reject=True, penalty=1.0, max_similarity=max_sim)

        penalty = clamp01((max_sim - self.config.soft_threshold) / self.config.penalty_span)
        return RedundancyResult(reject=False, penalty=penalty, max_similarity=max_sim)
