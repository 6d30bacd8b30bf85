# posyandu/wizard/__init__.py
from .categories import Kategori, CategorySchema, schema_for
from .controller import ExaminationWizard
from .form_store import ExaminationFormStore
from .schema import PemeriksaanFormData, SelectedParticipant
from .state import StateError, WizardState
from .steps import WizardStatus, WizardStep
from .summary import build_summary

__all__ = [
    "Kategori",
    "CategorySchema",
    "schema_for",
    "ExaminationWizard",
    "ExaminationFormStore",
    "PemeriksaanFormData",
    "SelectedParticipant",
    "StateError",
    "WizardState",
    "WizardStatus",
    "WizardStep",
    "build_summary",
]
