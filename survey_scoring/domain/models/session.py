"""Survey session snapshot consumed by the question selector.

The orchestrator owns and mutates all of this between turns; the scoring
engine treats a SurveySession as a read-only snapshot.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from survey_scoring.domain.models.conversation import ConversationHistoryEntry
from survey_scoring.domain.models.questions import AskedQuestion, TemplateUsage
from survey_scoring.domain.models.slots import SlotStateSet


class SurveySession(BaseModel):
    """Per-session state needed to pick the next question."""

    slot_state: SlotStateSet = Field(default_factory=SlotStateSet)
    asked_questions: List[AskedQuestion] = Field(default_factory=list)
    conversation_history: List[ConversationHistoryEntry] = Field(default_factory=list)
    template_history: Dict[str, TemplateUsage] = Field(default_factory=dict)
    topic_history: List[str] = Field(default_factory=list)
    turn: int = Field(default=0, ge=0)
    total_questions: int = Field(default=0, ge=0)
    low_confidence_streak: int = Field(default=0, ge=0)
    survey_type: str = "general"
    last_top_eig: Optional[float] = Field(
        default=None,
        description="Best expected info gain from the previous selection",
    )

    def usage_of(self, template_id: str) -> TemplateUsage:
        return self.template_history.get(template_id) or TemplateUsage()
