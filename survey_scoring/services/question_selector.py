"""
Greedy next-question selection and early-stop policy.

Ranks candidate question templates for a survey session:

    score = priority
          + 3.0 * slot_coverage      (share of targets still unfilled)
          + 2.0 * confidence_lift    (1 - mean target confidence)
          + 2.0 * expected_info_gain
          - 1.2 * fatigue
          - 1.5 * redundancy_penalty

Near-duplicate candidates (RedundancyDetector reject) are dropped before
ranking. Before ranking at all, should_halt() decides whether the survey
should stop. The session is a read-only snapshot: the caller stores the
returned top_eig as session.last_top_eig and records the asked question.
"""

from typing import List, Optional, Sequence

import structlog

from survey_scoring.core.config import ScoringConfig
from survey_scoring.domain.models.questions import QuestionTemplate
from survey_scoring.domain.models.scores import (
    CandidateScore,
    HaltDecision,
    SelectionResult,
)
from survey_scoring.domain.models.session import SurveySession
from survey_scoring.domain.models.slots import SlotPriority, SlotStateSet
from survey_scoring.services.scoring.answer_quality import AnswerQualityScorer
from survey_scoring.services.scoring.calibration import min_threshold_for
from survey_scoring.services.scoring.fatigue import FatigueEstimator
from survey_scoring.services.scoring.information_gain import expected_info_gain
from survey_scoring.services.scoring.redundancy import RedundancyDetector

logger = structlog.get_logger(__name__)

FEEDBACK_SURVEY = "feedback"


class QuestionSelector:
    """Pick the next question for a session, or decide to stop."""

    def __init__(
        self,
        redundancy_detector: RedundancyDetector,
        fatigue_estimator: Optional[FatigueEstimator] = None,
        config: Optional[ScoringConfig] = None,
    ):
        self.config = config or ScoringConfig()
        self.redundancy_detector = redundancy_detector
        self.fatigue_estimator = fatigue_estimator or FatigueEstimator(
            quality_scorer=AnswerQualityScorer(self.config.answer_quality),
            config=self.config.fatigue,
        )

    # ------------------------------------------------------------------
    # Slot helpers
    # ------------------------------------------------------------------

    def _threshold(self, slot_state: SlotStateSet, slot_name: str) -> float:
        return min_threshold_for(
            slot_state.schemas.get(slot_name), self.config.slot_thresholds
        )

    def slot_filled(self, slot_state: SlotStateSet, slot_name: str) -> bool:
        """A slot is filled once it exists with confidence at its threshold."""
        slot = slot_state.slots.get(slot_name)
        return slot is not None and slot.confidence >= self._threshold(
            slot_state, slot_name
        )

    def slot_coverage(self, template: QuestionTemplate, slot_state: SlotStateSet) -> float:
        """Share of the template's targets that still need a question."""
        if not template.slot_targets:
            return 0.0
        unfilled = [
            name for name in template.slot_targets if not self.slot_filled(slot_state, name)
        ]
        return len(unfilled) / len(template.slot_targets)

    def confidence_lift(self, template: QuestionTemplate, slot_state: SlotStateSet) -> float:
        """Room for confidence gain: 1 - mean confidence of the targets."""
        if not template.slot_targets:
            return 0.0
        total = sum(slot_state.confidence_of(name) for name in template.slot_targets)
        return 1.0 - total / len(template.slot_targets)

    def coverage(self, slot_state: SlotStateSet) -> float:
        """Share of required slots that are filled (0 when none are required)."""
        required = [name for name, schema in slot_state.schemas.items() if schema.required]
        filled = [name for name in required if self.slot_filled(slot_state, name)]
        return len(filled) / max(1, len(required))

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    def template_allowed(self, template: QuestionTemplate, session: SurveySession) -> bool:
        """
        Whether a template may be asked this turn.

        Blocks on: unmet dependencies, cooldown since last use, usage limit,
        and a topic streak (same topic N turns in a row) unless the template
        targets a critical slot that is still below its threshold.
        """
        slot_state = session.slot_state

        for dependency in template.dependencies:
            if not self.slot_filled(slot_state, dependency):
                return False

        usage = session.usage_of(template.id)
        if session.turn - usage.last_turn < template.cooldown_turns:
            return False
        if template.max_asks is not None and usage.count >= template.max_asks:
            return False

        streak_limit = self.config.selection.topic_streak_limit
        recent_topics = session.topic_history[-streak_limit:]
        topic_streak = (
            template.topic is not None
            and len(recent_topics) >= streak_limit
            and all(topic == template.topic for topic in recent_topics)
        )
        if topic_streak:
            return any(
                slot_state.schemas.get(name) is not None
                and slot_state.schemas[name].priority == SlotPriority.CRITICAL
                and not self.slot_filled(slot_state, name)
                for name in template.slot_targets
            )

        return True

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _has_depth(self, slot_state: SlotStateSet) -> bool:
        min_length = self.config.completion.min_detail_length
        return any(
            slot.value is not None and len(slot.value) > min_length
            for slot in slot_state.slots.values()
        )

    def _low_marginal_utility(self, session: SurveySession, fatigue: float) -> bool:
        completion = self.config.completion
        top_eig = session.last_top_eig or 0.0
        return (
            top_eig < completion.low_eig_threshold
            or fatigue > completion.high_fatigue_threshold
        )

    def can_generate_brief(self, session: SurveySession, fatigue: float) -> bool:
        """
        Whether enough is known to write the brief.

        Requires required-slot coverage (0.75, or 0.85 for feedback surveys)
        with every critical slot filled, then either depth (a slot value
        longer than 50 chars) or low marginal utility of further questions.
        Feedback surveys instead need depth or very high fatigue.
        """
        completion = self.config.completion
        slot_state = session.slot_state

        is_feedback = session.survey_type == FEEDBACK_SURVEY
        min_coverage = (
            completion.feedback_min_coverage if is_feedback else completion.min_coverage
        )

        critical_filled = all(
            self.slot_filled(slot_state, name)
            for name, schema in slot_state.schemas.items()
            if schema.priority == SlotPriority.CRITICAL
        )
        if self.coverage(slot_state) < min_coverage or not critical_filled:
            return False

        has_depth = self._has_depth(slot_state)
        if is_feedback:
            return has_depth or fatigue > completion.feedback_fatigue_threshold
        return has_depth or self._low_marginal_utility(session, fatigue)

    def should_halt(self, session: SurveySession, fatigue: float) -> HaltDecision:
        """Decide whether to stop asking questions, with the reason."""
        completion = self.config.completion
        top_eig = session.last_top_eig or 0.0

        if session.total_questions >= self.config.selection.max_turns:
            return HaltDecision(halt=True, reason="max_questions_reached")
        if session.low_confidence_streak >= completion.low_confidence_streak_limit:
            return HaltDecision(halt=True, reason="low_confidence_streak")
        if self.can_generate_brief(session, fatigue):
            return HaltDecision(halt=True, reason="sufficient_coverage")
        if (
            top_eig < completion.low_eig_threshold
            and fatigue > completion.high_fatigue_threshold
        ):
            return HaltDecision(halt=True, reason="low_eig_high_fatigue")
        if (
            top_eig < completion.low_value_eig_threshold
            and fatigue > completion.low_value_fatigue_threshold
        ):
            return HaltDecision(halt=True, reason="low_value_high_fatigue")

        return HaltDecision(halt=False)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    async def select_next_question(
        self,
        session: SurveySession,
        templates: Sequence[QuestionTemplate],
    ) -> SelectionResult:
        """
        Rank templates and return the best one.

        Args:
            session: Read-only snapshot of the survey session
            templates: Candidate question templates

        Returns:
            SelectionResult; template is None when the survey should halt or
            no candidate survives filtering (see reason)
        """
        selection = self.config.selection
        fatigue = self.fatigue_estimator.risk(
            session.conversation_history, lookback=selection.fatigue_lookback
        )

        halt = self.should_halt(session, fatigue)
        if halt.halt:
            logger.info("survey_halted", reason=halt.reason, fatigue=round(fatigue, 3))
            return SelectionResult(reason=halt.reason, fatigue=fatigue)

        eligible = [t for t in templates if self.template_allowed(t, session)]
        if not eligible:
            logger.info("no_candidate_templates", total=len(templates))
            return SelectionResult(reason="no_candidates", fatigue=fatigue)

        slot_state = session.slot_state
        scored: List[CandidateScore] = []
        rejected_ids: List[str] = []

        for template in eligible:
            redundancy = await self.redundancy_detector.penalty(
                template.prompt,
                session.asked_questions,
                threshold=self.config.redundancy.reject_threshold,
            )
            if redundancy.reject:
                rejected_ids.append(template.id)
                continue

            coverage = self.slot_coverage(template, slot_state)
            lift = self.confidence_lift(template, slot_state)
            eig = expected_info_gain(template, slot_state, self.config.information_gain)
            priority = (
                template.priority
                if template.priority is not None
                else selection.default_priority
            )

            score = (
                priority
                + coverage * selection.coverage_weight
                + lift * selection.confidence_lift_weight
                + eig * selection.eig_weight
                - fatigue * selection.fatigue_penalty_weight
                - redundancy.penalty * selection.redundancy_penalty_weight
            )
            scored.append(
                CandidateScore(
                    template=template,
                    score=score,
                    eig=eig,
                    coverage=coverage,
                    confidence_lift=lift,
                    redundancy_penalty=redundancy.penalty,
                )
            )

        if not scored:
            logger.info("all_candidates_redundant", rejected=len(rejected_ids))
            return SelectionResult(
                reason="all_redundant", fatigue=fatigue, rejected_ids=rejected_ids
            )

        scored.sort(key=lambda candidate: candidate.score, reverse=True)
        winner = scored[0]

        logger.info(
            "question_selected",
            template_id=winner.template.id,
            score=round(winner.score, 2),
            eig=round(winner.eig, 2),
            candidates=len(scored),
            rejected=len(rejected_ids),
        )

        return SelectionResult(
            template=winner.template,
            fatigue=fatigue,
            top_eig=winner.eig,
            candidates=scored,
            rejected_ids=rejected_ids,
        )
