# posyandu/services/__init__.py
from .wizard_session import ExaminationSessionService, init_db

__all__ = ["ExaminationSessionService", "init_db"]
