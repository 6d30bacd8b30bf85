# posyandu/submission/adapter.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from posyandu.exceptions import SubmissionRejected, TransportFailure
from posyandu.submission.payload import ExaminationPayload, build_payload
from posyandu.submission.sink import ExaminationSink
from posyandu.utils.logging import get_logger
from posyandu.wizard.schema import PemeriksaanFormData, SelectedParticipant

logger = get_logger(__name__)

SubmissionError = Union[SubmissionRejected, TransportFailure]


@dataclass(frozen=True)
class SubmissionResult:
    record_id: Optional[str] = None
    error: Optional[SubmissionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, record_id: str) -> "SubmissionResult":
        return cls(record_id=record_id)

    @classmethod
    def failure(cls, error: SubmissionError) -> "SubmissionResult":
        return cls(error=error)


class SubmissionAdapter:
    """
    Builds the examination payload and hands it to the persistence
    collaborator, classifying whatever goes wrong. Never retries.
    """

    def __init__(self, sink: ExaminationSink):
        self.sink = sink

    def build(self, participant: SelectedParticipant, draft: PemeriksaanFormData) -> ExaminationPayload:
        return build_payload(participant, draft)

    def submit(self, payload: ExaminationPayload) -> SubmissionResult:
        try:
            record_id = self.sink.save(payload)
        except SubmissionRejected as exc:
            logger.warning("Examination for peserta %s rejected: %s", payload.peserta_id, exc.message)
            return SubmissionResult.failure(exc)
        except TransportFailure as exc:
            logger.warning("Examination for peserta %s not delivered: %s", payload.peserta_id, exc.message)
            return SubmissionResult.failure(exc)
        except Exception as exc:
            logger.exception("Unexpected error while submitting examination for peserta %s", payload.peserta_id)
            return SubmissionResult.failure(TransportFailure(
                message="Terjadi kesalahan saat menyimpan data",
                detail={"reason": exc.__class__.__name__},
            ))
        return SubmissionResult.success(record_id)
