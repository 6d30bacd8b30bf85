# posyandu/submission/sink.py
from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from posyandu.exceptions import SubmissionRejected, TransportFailure
from posyandu.models import Kunjungan
from posyandu.submission.payload import ExaminationPayload
from posyandu.utils.logging import get_logger
from posyandu.wizard.categories import Kategori
from posyandu.wizard.scoring import parse_number
from posyandu.wizard.vocabularies import LOKASI

logger = get_logger(__name__)


class ExaminationSink(ABC):
    """
    Persistence collaborator for finished examinations.

    Implementations raise SubmissionRejected when the record is refused
    on business grounds and TransportFailure when it could not be stored
    at all.
    """

    @abstractmethod
    def save(self, payload: ExaminationPayload) -> str:
        """Persist one examination and return its record id."""
        ...

    @abstractmethod
    def latest_for(self, peserta_id: str) -> Optional[Dict[str, Any]]:
        """Payload of the participant's most recent stored visit, if any."""
        ...


def check_payload(payload: ExaminationPayload) -> List[Dict[str, str]]:
    """Backend-side rules; returns field errors in submission order."""
    errors: List[Dict[str, str]] = []

    if payload.kategori not in {k.value for k in Kategori}:
        errors.append({"field": "kategori", "message": "Kategori peserta tidak valid."})

    try:
        visit_date = date.fromisoformat(payload.tanggal_kunjungan)
    except ValueError:
        errors.append({
            "field": "tanggal_kunjungan",
            "message": "Tanggal kunjungan tidak valid.",
        })
    else:
        if visit_date > date.today():
            errors.append({
                "field": "tanggal_kunjungan",
                "message": "Tanggal kunjungan tidak boleh melebihi hari ini.",
            })

    if payload.lokasi not in LOKASI.values:
        errors.append({"field": "lokasi", "message": "Lokasi pemeriksaan tidak valid."})

    weight = payload.category_fields.get("berat_badan")
    if weight is not None:
        value = parse_number(weight)
        if value is None or value <= 0:
            errors.append({"field": "berat_badan", "message": "Berat badan harus lebih dari 0."})

    return errors


class SqlAlchemyExaminationStore(ExaminationSink):
    """
    Stores examinations in the `kunjungan` table.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        if session_factory is None:
            from posyandu.db import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory

    @contextmanager
    def _session(self):
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def save(self, payload: ExaminationPayload) -> str:
        errors = check_payload(payload)
        if errors:
            raise SubmissionRejected(
                message=errors[0]["message"],
                detail={"errors": errors},
            )

        record = Kunjungan(
            peserta_id=payload.peserta_id,
            kategori=payload.kategori,
            tanggal_kunjungan=date.fromisoformat(payload.tanggal_kunjungan),
            lokasi=payload.lokasi,
            rujuk=payload.rujuk,
            data=payload.as_request(),
        )
        try:
            with self._session() as session:
                session.add(record)
                session.flush()
                record_id = record.id
        except SQLAlchemyError as exc:
            logger.error("Could not store examination for peserta %s: %s", payload.peserta_id, exc)
            raise TransportFailure(
                message="Gagal menyimpan hasil pemeriksaan. Silakan coba lagi.",
                detail={"reason": exc.__class__.__name__},
            ) from exc

        logger.info("Stored examination %s for peserta %s", record_id, payload.peserta_id)
        return record_id

    def latest_for(self, peserta_id: str) -> Optional[Dict[str, Any]]:
        stmt = (
            select(Kunjungan)
            .where(Kunjungan.peserta_id == peserta_id)
            .order_by(Kunjungan.tanggal_kunjungan.desc(), Kunjungan.created_at.desc())
            .limit(1)
        )
        try:
            with self._session() as session:
                row = session.scalars(stmt).first()
                return dict(row.data) if row is not None else None
        except SQLAlchemyError as exc:
            raise TransportFailure(
                message="Gagal memuat kunjungan terakhir.",
                detail={"reason": exc.__class__.__name__},
            ) from exc
