# posyandu/wizard/state.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from posyandu.wizard.schema import PemeriksaanFormData, SelectedParticipant
from posyandu.wizard.steps import WizardStatus, WizardStep


@dataclass
class StateError:
    """One user-facing error attached to the state (field may be None for form-level errors)."""

    code: str
    message: str
    field: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"code": self.code, "field": self.field, "message": self.message}


@dataclass
class WizardState:
    """
    Snapshot of one examination wizard session.

    Transitions never modify a state in place; they return a new one with
    its own copy of the draft.
    """

    participant: Optional[SelectedParticipant]
    step: WizardStep = WizardStep.VERIFICATION
    status: WizardStatus = WizardStatus.ACTIVE
    draft: PemeriksaanFormData = field(default_factory=PemeriksaanFormData)
    errors: List[StateError] = field(default_factory=list)

    # Last informational message for the user ("Form berhasil direset", ...)
    notice: Optional[str] = None

    # Id returned by the persistence collaborator once submitted
    record_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status == WizardStatus.ACTIVE

    @property
    def is_saving(self) -> bool:
        return self.status == WizardStatus.SAVING

    @property
    def location(self) -> str:
        """Step position as round-tripped through the URL."""
        return f"?step={int(self.step)}"

    def field_errors(self) -> Dict[str, str]:
        return {e.field: e.message for e in self.errors if e.field}

    def evolve(self, **changes) -> "WizardState":
        """Copy with a deep-copied draft, cleared errors/notice unless given."""
        changes.setdefault("draft", self.draft.model_copy(deep=True))
        changes.setdefault("errors", [])
        changes.setdefault("notice", None)
        return replace(self, **changes)
