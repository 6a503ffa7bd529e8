"""Scoring result models.

Every score carried here is already clamped to [0, 1] by the component that
produced it, except CandidateScore.score which is an unbounded ranking value.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from survey_scoring.domain.models.questions import QuestionTemplate


class RedundancyResult(BaseModel):
    """Outcome of comparing a candidate question with asked questions."""

    reject: bool = False
    penalty: float = Field(default=0.0, ge=0.0, le=1.0)
    max_similarity: float = 0.0


class ConfidenceFeatures(BaseModel):
    """Evidence blended into a calibrated slot confidence."""

    self_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    validator: float = Field(default=0.5, ge=0.0, le=1.0)
    evidence_spans: int = Field(default=0, ge=0)
    answer_quality: float = Field(default=0.0, ge=0.0, le=1.0)
    novelty: float = Field(default=1.0, ge=0.0, le=1.0)
    consistency: float = Field(default=1.0, ge=0.0, le=1.0)
    critical: bool = False


class ExtractionAssessment(BaseModel):
    """Suggested update for one extracted slot value. Never applied here."""

    slot_name: str
    value: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0)
    threshold: float = Field(ge=0.0, le=1.0)
    meets_threshold: bool
    provisional: bool
    features: ConfidenceFeatures

    @property
    def accepted(self) -> bool:
        return self.meets_threshold or self.provisional


class CandidateScore(BaseModel):
    """Ranking breakdown for one candidate template."""

    template: QuestionTemplate
    score: float
    eig: float
    coverage: float
    confidence_lift: float
    redundancy_penalty: float


class HaltDecision(BaseModel):
    """Whether the survey should stop asking questions."""

    halt: bool = False
    reason: Optional[str] = None


class SelectionResult(BaseModel):
    """Outcome of one next-question selection."""

    template: Optional[QuestionTemplate] = None
    reason: Optional[str] = Field(
        default=None, description="Why no template was selected"
    )
    fatigue: float = Field(default=0.0, ge=0.0, le=1.0)
    top_eig: Optional[float] = None
    candidates: List[CandidateScore] = Field(default_factory=list)
    rejected_ids: List[str] = Field(default_factory=list)
