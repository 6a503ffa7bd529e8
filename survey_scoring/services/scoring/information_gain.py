"""Information gain ranker - expected value of asking a question template."""

from typing import Optional

from survey_scoring.core.config import InformationGainConfig
from survey_scoring.domain.models.questions import QuestionTemplate
from survey_scoring.domain.models.slots import SlotStateSet
from survey_scoring.services.similarity import clamp01


def targets_critical_slot(template: QuestionTemplate, slot_state: SlotStateSet) -> bool:
    """True if any targeted slot is critical priority or required."""
    for slot_name in template.slot_targets:
        schema = slot_state.schemas.get(slot_name)
        if schema is not None and schema.is_critical:
            return True
    return False


def expected_info_gain(
    template: QuestionTemplate,
    slot_state: SlotStateSet,
    config: Optional[InformationGainConfig] = None,
) -> float:
    """
    Expected information gain of asking a template.

    Mean remaining uncertainty (1 - confidence, missing slot = 1) over the
    targeted slots, plus a flat boost (0.3) when any target is a must-have
    slot so required fields are not starved. Clamped to [0, 1]; a template
    with no targets gains nothing.
    """
    if not template.slot_targets:
        return 0.0

    config = config or InformationGainConfig()

    uncertainties = [
        1.0 - slot_state.confidence_of(slot_name) for slot_name in template.slot_targets
    ]
    avg_uncertainty = sum(uncertainties) / len(uncertainties)

    critical_boost = config.critical_boost if targets_critical_slot(template, slot_state) else 0.0

    return clamp01(avg_uncertainty + critical_boost)
