"""Slot domain models.

A slot is a single structured field a survey is trying to populate
(e.g. "budget", "deadline"). SlotSchema is the static catalog entry;
SlotState is the per-session record the orchestrator mutates between turns.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class SlotPriority(str, Enum):
    """How much a slot matters for brief generation."""

    CRITICAL = "critical"
    NORMAL = "normal"


class SlotSchema(BaseModel):
    """Static definition of a slot."""

    name: str
    priority: SlotPriority = SlotPriority.NORMAL
    required: bool = False

    @property
    def is_critical(self) -> bool:
        """Critical priority or required: either makes the slot a must-have."""
        return self.priority == SlotPriority.CRITICAL or self.required


class SlotState(BaseModel):
    """Current value of a slot and how sure the system is of it."""

    name: str
    value: Optional[str] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class SlotStateSet(BaseModel):
    """All slot states of a session plus the schema catalog they belong to.

    Owned by the orchestrator; the scoring engine only reads it.
    """

    slots: Dict[str, SlotState] = Field(default_factory=dict)
    schemas: Dict[str, SlotSchema] = Field(default_factory=dict)

    def confidence_of(self, slot_name: str) -> float:
        """Confidence of a slot, 0.0 when the slot has no state yet."""
        slot = self.slots.get(slot_name)
        return slot.confidence if slot is not None else 0.0

    def value_of(self, slot_name: str) -> Optional[str]:
        slot = self.slots.get(slot_name)
        return slot.value if slot is not None else None
