# posyandu/submission/__init__.py
from .adapter import SubmissionAdapter, SubmissionResult
from .payload import ExaminationPayload, build_payload
from .sink import ExaminationSink, SqlAlchemyExaminationStore

__all__ = [
    "SubmissionAdapter",
    "SubmissionResult",
    "ExaminationPayload",
    "build_payload",
    "ExaminationSink",
    "SqlAlchemyExaminationStore",
]
