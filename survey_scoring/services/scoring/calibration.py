"""Confidence calibration for extracted slot values.

Blends the extractor's self-reported confidence with independent evidence
(validator score, evidence spans, answer quality, novelty, consistency) into
one calibrated confidence, and decides whether the value clears the slot's
threshold. Produces suggestions only; the orchestrator applies them.
"""

import math
from typing import Any, Optional

import structlog

from survey_scoring.core.config import (
    CalibrationConfig,
    ScoringConfig,
    SlotThresholdsConfig,
)
from survey_scoring.domain.models.scores import ConfidenceFeatures, ExtractionAssessment
from survey_scoring.domain.models.slots import SlotPriority, SlotSchema, SlotStateSet
from survey_scoring.services.scoring.answer_quality import AnswerQualityScorer
from survey_scoring.services.scoring.novelty import NoveltyDetector
from survey_scoring.services.similarity import clamp01

logger = structlog.get_logger(__name__)


def min_threshold_for(
    schema: Optional[SlotSchema],
    thresholds: Optional[SlotThresholdsConfig] = None,
) -> float:
    """Minimum confidence for a slot to count as filled (unknown slot = normal)."""
    thresholds = thresholds or SlotThresholdsConfig()
    if schema is not None and schema.priority == SlotPriority.CRITICAL:
        return thresholds.critical
    return thresholds.normal


def calibrated_confidence(
    features: ConfidenceFeatures,
    config: Optional[CalibrationConfig] = None,
) -> float:
    """
    Calibrated confidence from confidence features.

    Formula:
        0.35*self + 0.25*validator + 0.15*tanh(evidence_spans/2)
        + 0.15*answer_quality + 0.10*consistency
        + 0.05*max(0, novelty - 0.3)*consistency

    Novelty only helps when the value is also consistent. Critical slots are
    capped at 0.85. Result is clamped to [0, 1].
    """
    config = config or CalibrationConfig()

    confidence = (
        config.self_confidence_weight * features.self_confidence
        + config.validator_weight * features.validator
        + config.evidence_weight * math.tanh(features.evidence_spans / 2)
        + config.answer_quality_weight * features.answer_quality
        + config.consistency_weight * features.consistency
    )
    confidence += (
        config.novelty_weight
        * max(0.0, features.novelty - config.novelty_floor)
        * features.consistency
    )

    if features.critical:
        confidence = min(confidence, config.critical_slot_cap)

    return clamp01(confidence)


class ConfidenceCalibrator:
    """
    Assess an extracted slot value against the current session state.

    Gathers answer quality (AnswerQualityScorer), novelty and consistency
    (NoveltyDetector), calibrates, and compares against the slot threshold.
    A value explicitly asked for this turn may be accepted provisionally up to
    `provisional_buffer` (0.1) below the threshold.
    """

    def __init__(
        self,
        novelty_detector: NoveltyDetector,
        quality_scorer: Optional[AnswerQualityScorer] = None,
        config: Optional[ScoringConfig] = None,
    ):
        self.config = config or ScoringConfig()
        self.novelty_detector = novelty_detector
        self.quality_scorer = quality_scorer or AnswerQualityScorer(self.config.answer_quality)

    async def assess(
        self,
        slot_name: str,
        new_value: Any,
        answer: Any,
        slot_state: SlotStateSet,
        self_confidence: float = 0.0,
        evidence_spans: int = 0,
        validator_score: Optional[float] = None,
        asked_this_turn: bool = False,
    ) -> ExtractionAssessment:
        """
        Calibrate confidence for one extracted value.

        Args:
            slot_name: Slot the value was extracted for
            new_value: Extracted value
            answer: Respondent answer the value came from
            slot_state: Current slot states and schema
            self_confidence: Extractor's own confidence in [0, 1]
            evidence_spans: Number of supporting quotes found in the answer
            validator_score: External validator score (None = neutral 0.5)
            asked_this_turn: Whether the slot was explicitly asked this turn

        Returns:
            ExtractionAssessment with calibrated confidence and acceptance flags
        """
        calibration = self.config.calibration
        schema = slot_state.schemas.get(slot_name)

        if validator_score is None:
            validator_score = calibration.default_validator_score

        novelty = await self.novelty_detector.calculate_novelty(
            new_value, slot_state.value_of(slot_name)
        )
        consistency = await self.novelty_detector.contradiction_score(
            slot_name, new_value, slot_state, novelty=novelty
        )

        features = ConfidenceFeatures(
            self_confidence=clamp01(self_confidence),
            validator=clamp01(validator_score),
            evidence_spans=max(0, evidence_spans),
            answer_quality=self.quality_scorer.score(answer),
            novelty=novelty,
            consistency=consistency,
            critical=schema is not None and schema.priority == SlotPriority.CRITICAL,
        )

        confidence = calibrated_confidence(features, calibration)
        threshold = min_threshold_for(schema, self.config.slot_thresholds)
        meets_threshold = confidence >= threshold
        provisional = (
            not meets_threshold
            and asked_this_turn
            and confidence >= threshold - calibration.provisional_buffer
        )

        logger.info(
            "slot_value_assessed",
            slot=slot_name,
            confidence=round(confidence, 3),
            threshold=threshold,
            meets_threshold=meets_threshold,
            provisional=provisional,
        )

        return ExtractionAssessment(
            slot_name=slot_name,
            value=None if new_value is None else str(new_value),
            confidence=confidence,
            threshold=threshold,
            meets_threshold=meets_threshold,
            provisional=provisional,
            features=features,
        )
