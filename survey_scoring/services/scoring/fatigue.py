"""Fatigue estimator - risk that the respondent is disengaging.

Aggregates recent answer quality into one score, adding a trend term when
quality is declining.
"""

from typing import Optional, Sequence

import structlog

from survey_scoring.core.config import FatigueConfig
from survey_scoring.domain.models.conversation import HistoryItem, entry_text
from survey_scoring.services.scoring.answer_quality import AnswerQualityScorer
from survey_scoring.services.similarity import clamp01

logger = structlog.get_logger(__name__)


class FatigueEstimator:
    """
    Estimate disengagement risk from the last few answers.

    Algorithm:
    1. Take the last `lookback` history entries (default 3)
    2. Score each answer with AnswerQualityScorer (`answer`, else `text`)
    3. avg = mean quality over the window
    4. With 2+ entries: recent = mean of the last 2, earlier = mean of all
       but the last (the two windows overlap), trend = max(0, earlier - recent)
    5. fatigue = clamp01(1 - avg + 0.3 * trend)

    Consistently terse answers give high base fatigue; answers that are
    getting terser are flagged more aggressively than the average alone.
    """

    def __init__(
        self,
        quality_scorer: Optional[AnswerQualityScorer] = None,
        config: Optional[FatigueConfig] = None,
    ):
        self.quality_scorer = quality_scorer or AnswerQualityScorer()
        self.config = config or FatigueConfig()

    def risk(
        self,
        conversation_history: Optional[Sequence[HistoryItem]],
        lookback: Optional[int] = None,
    ) -> float:
        """
        Compute fatigue risk.

        Args:
            conversation_history: Answers, most recent last (None/empty -> 0)
            lookback: Window size (defaults to config.lookback)

        Returns:
            Fatigue in [0, 1]
        """
        if not conversation_history:
            return 0.0

        lookback = lookback if lookback is not None else self.config.lookback
        if lookback <= 0:
            return 0.0

        window = list(conversation_history)[-lookback:]
        qualities = [self.quality_scorer.score(entry_text(entry)) for entry in window]
        if not qualities:
            return 0.0

        avg_quality = sum(qualities) / len(qualities)

        trend = 0.0
        if len(qualities) >= 2:
            recent = qualities[-self.config.recent_window :]
            recent_avg = sum(recent) / len(recent)
            earlier_avg = sum(qualities[:-1]) / (len(qualities) - 1)
            trend = max(0.0, earlier_avg - recent_avg)

        fatigue = clamp01(1 - avg_quality + self.config.trend_weight * trend)

        logger.debug(
            "fatigue_estimated",
            window=len(qualities),
            avg_quality=round(avg_quality, 3),
            trend=round(trend, 3),
            fatigue=round(fatigue, 3),
        )
        return fatigue
