"""Domain models package."""

from .slots import SlotPriority, SlotSchema, SlotState, SlotStateSet
from .questions import AskedQuestion, Embedding, QuestionTemplate, TemplateUsage
from .conversation import ConversationHistoryEntry, HistoryItem, entry_text
from .session import SurveySession
from .scores import (
    CandidateScore,
    ConfidenceFeatures,
    ExtractionAssessment,
    HaltDecision,
    RedundancyResult,
    SelectionResult,
)

__all__ = [
    "SlotPriority",
    "SlotSchema",
    "SlotState",
    "SlotStateSet",
    "AskedQuestion",
    "Embedding",
    "QuestionTemplate",
    "TemplateUsage",
    "ConversationHistoryEntry",
    "HistoryItem",
    "entry_text",
    "SurveySession",
    "CandidateScore",
    "ConfidenceFeatures",
    "ExtractionAssessment",
    "HaltDecision",
    "RedundancyResult",
    "SelectionResult",
]
