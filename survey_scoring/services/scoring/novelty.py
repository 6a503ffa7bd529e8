"""Novelty / contradiction detector for extracted slot values.

Compares a newly extracted value with the slot's stored value to tell
probable updates from probable contradictions.
"""

from typing import Any, Optional

import structlog

from survey_scoring.core.config import NoveltyConfig
from survey_scoring.domain.models.slots import SlotStateSet
from survey_scoring.services.embedding_service import EmbeddingService
from survey_scoring.services.similarity import clamp01, cosine

logger = structlog.get_logger(__name__)


def _is_absent(value: Any) -> bool:
    return value is None or value == ""


class NoveltyDetector:
    """
    Semantic novelty and contradiction scoring.

    Contradictions are flagged conservatively: only when the new value is
    semantically far from the stored one AND the stored value was weakly
    held. Confident facts that are merely restated at length stay consistent.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        config: Optional[NoveltyConfig] = None,
    ):
        self.embedding_service = embedding_service
        self.config = config or NoveltyConfig()

    async def calculate_novelty(self, new_value: Any, existing_value: Any) -> float:
        """
        Semantic novelty of new_value relative to existing_value.

        Returns:
            1.0 if either value is absent (nothing to compare against),
            0.5 if either embedding is unavailable, else 1 - cosine,
            clamped to [0, 1]
        """
        if _is_absent(new_value) or _is_absent(existing_value):
            return 1.0

        new_embedding = await self.embedding_service.embed(str(new_value))
        existing_embedding = await self.embedding_service.embed(str(existing_value))

        if not new_embedding or not existing_embedding:
            return self.config.neutral_novelty

        return clamp01(1.0 - cosine(new_embedding, existing_embedding))

    async def contradiction_score(
        self,
        slot_name: str,
        new_value: Any,
        slot_state: SlotStateSet,
        novelty: Optional[float] = None,
    ) -> float:
        """
        Consistency of new_value with the slot's stored value.

        Pass `novelty` when it is already known for this value pair to skip
        recomputing it.

        Lower means more likely contradictory:
        - 1.0 when there is nothing to conflict with (no slot, no stored
          value, or no new value)
        - 0.3 when novelty > 0.8 and stored confidence < 0.6
        - 1.0 otherwise (consistent or additive information)
        """
        slot = slot_state.slots.get(slot_name)
        if slot is None or _is_absent(slot.value) or _is_absent(new_value):
            return 1.0

        if novelty is None:
            novelty = await self.calculate_novelty(new_value, slot.value)

        if (
            novelty > self.config.contradiction_novelty
            and slot.confidence < self.config.contradiction_confidence
        ):
            logger.info(
                "contradiction_flagged",
                slot=slot_name,
                novelty=round(novelty, 3),
                existing_confidence=slot.confidence,
            )
            return self.config.contradiction_score

        return 1.0
