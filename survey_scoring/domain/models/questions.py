"""Question domain models.

QuestionTemplate is a catalog entry describing a candidate question and the
slots answering it would inform. AskedQuestion records a question already put
to the respondent, with its embedding cached by the orchestrator.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

# Fixed-dimensionality vector for one text; empty means "not available"
Embedding = List[float]


class AskedQuestion(BaseModel):
    """A question already asked in this session."""

    text: str
    embedding: Optional[Embedding] = Field(
        default=None, description="Cached embedding, None if never computed"
    )

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


class QuestionTemplate(BaseModel):
    """Candidate question and the slots it targets."""

    id: str = ""
    prompt: str
    slot_targets: List[str] = Field(default_factory=list)

    # Selection metadata
    topic: Optional[str] = None
    priority: Optional[float] = Field(
        default=None, description="Base ranking priority (None = config default)"
    )
    dependencies: List[str] = Field(
        default_factory=list, description="Slots that must be filled before asking"
    )
    cooldown_turns: int = Field(default=0, ge=0)
    max_asks: Optional[int] = Field(
        default=None, ge=1, description="Maximum times this template may be asked"
    )


class TemplateUsage(BaseModel):
    """How often and when a template was last asked."""

    count: int = Field(default=0, ge=0)
    last_turn: int = -999
