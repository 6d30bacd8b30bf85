# posyandu/wizard/steps.py
from enum import Enum, IntEnum


class WizardStep(IntEnum):
    VERIFICATION = 1
    CATEGORY_EXAM = 2
    TIME_LOCATION = 3
    CONFIRMATION = 4


class WizardStatus(str, Enum):
    ACTIVE = "active"
    SAVING = "saving"
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"
    ABORTED = "aborted"


FIRST_STEP = WizardStep.VERIFICATION
LAST_STEP = WizardStep.CONFIRMATION


def parse_step(raw) -> WizardStep:
    """
    Read a step position coming back from the URL (`?step=N`).

    Anything unparsable or out of range falls back to the first step.
    """
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return FIRST_STEP
    if FIRST_STEP <= value <= LAST_STEP:
        return WizardStep(value)
    return FIRST_STEP
