"""Scoring components for adaptive survey question selection.

- answer_quality: heuristic depth of a single answer
- fatigue: disengagement risk from recent answer quality
- redundancy: semantic near-duplicate detection for candidate questions
- information_gain: expected value of asking a template
- novelty: novelty and contradiction of extracted slot values
- calibration: calibrated confidence for extracted slot values
"""

from survey_scoring.services.scoring.answer_quality import AnswerQualityScorer, answer_quality
from survey_scoring.services.scoring.fatigue import FatigueEstimator
from survey_scoring.services.scoring.redundancy import RedundancyDetector
from survey_scoring.services.scoring.information_gain import (
    expected_info_gain,
    targets_critical_slot,
)
from survey_scoring.services.scoring.novelty import NoveltyDetector
from survey_scoring.services.scoring.calibration import (
    ConfidenceCalibrator,
    calibrated_confidence,
    min_threshold_for,
)

__all__ = [
    "AnswerQualityScorer",
    "answer_quality",
    "FatigueEstimator",
    "RedundancyDetector",
    "expected_info_gain",
    "targets_critical_slot",
    "NoveltyDetector",
    "ConfidenceCalibrator",
    "calibrated_confidence",
    "min_threshold_for",
]
