"""Answer quality scorer - heuristic depth/informativeness of a free-text answer.

Pure, synchronous and deterministic: no embeddings, no I/O. Word lists and
point values come from AnswerQualityConfig so the heuristic can be tuned in
scoring.yaml without touching control flow.
"""

import re
from typing import Any, Optional, Pattern, Sequence, Tuple

import structlog

from survey_scoring.core.config import AnswerQualityConfig
from survey_scoring.services.similarity import clamp01

logger = structlog.get_logger(__name__)

DIGIT_PATTERN = re.compile(r"\d")
SENTENCE_SPLIT_PATTERN = re.compile(r"[.!?]")


def _word_pattern(
    phrases: Sequence[str], anchored: bool = False
) -> Optional[Pattern[str]]:
    """Case-insensitive whole-word alternation over phrases (None if there are none)."""
    alternation = "|".join(re.escape(p) for p in phrases if p)
    if not alternation:
        return None
    if anchored:
        return re.compile(rf"(?:^|\b)(?:{alternation})(?:\b|$)", re.IGNORECASE)
    return re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)


def _band_points(value: int, bands: Sequence[Tuple[float, float]]) -> float:
    """Points of the highest band whose (exclusive) minimum value exceeds."""
    for minimum, points in sorted(bands, key=lambda band: band[0], reverse=True):
        if value > minimum:
            return points
    return 0.0


class AnswerQualityScorer:
    """
    Score a single answer for depth on a [0, 1] scale.

    Algorithm (additive points on the trimmed text, then clamped):
    - Length band: >100 chars +0.4, >50 +0.3, >20 +0.2, >5 +0.1
    - Sentence band: >2 sentences +0.3, >1 +0.2
    - Contains a digit: +0.2
    - Contains a detail marker ("because", "such as", ...): +0.2
    - Contains an "I don't know" phrase: -0.6
    - Shorter than 10 chars: -0.3 (stacks with the length band)

    Non-string or empty input scores 0.
    """

    def __init__(self, config: Optional[AnswerQualityConfig] = None):
        self.config = config or AnswerQualityConfig()
        self._idk_pattern = _word_pattern(self.config.idk_phrases, anchored=True)
        self._detail_pattern = _word_pattern(self.config.detail_markers)

    def score(self, answer: Any) -> float:
        """
        Score an answer.

        Args:
            answer: Respondent's answer (anything non-string scores 0)

        Returns:
            Quality in [0, 1]
        """
        if not isinstance(answer, str) or not answer:
            return 0.0

        text = answer.strip()
        length = len(text)
        sentences = sum(
            1 for fragment in SENTENCE_SPLIT_PATTERN.split(text) if fragment.strip()
        )

        quality = 0.0
        quality += _band_points(length, self.config.length_bands)
        quality += _band_points(sentences, self.config.sentence_bands)

        if DIGIT_PATTERN.search(text):
            quality += self.config.numeric_bonus
        if self._detail_pattern is not None and self._detail_pattern.search(text):
            quality += self.config.detail_bonus
        if self.is_idk(text):
            quality -= self.config.idk_penalty
        if length < self.config.short_answer_length:
            quality -= self.config.short_answer_penalty

        return clamp01(quality)

    def is_idk(self, answer: Any) -> bool:
        """True if the answer contains an "I don't know"-equivalent phrase."""
        if self._idk_pattern is None or not isinstance(answer, str):
            return False
        return bool(self._idk_pattern.search(answer))


_default_scorer = AnswerQualityScorer()


def answer_quality(answer: Any) -> float:
    """Score an answer with the default heuristic configuration."""
    return _default_scorer.score(answer)
