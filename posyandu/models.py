# posyandu/models.py
from datetime import date, datetime, timezone
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    JSON,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from posyandu.db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Kunjungan(Base):
    """
    One submitted examination visit.

    The category-specific part of the payload is kept as-is in `data`;
    the columns hold what the visit list screens filter and sort on.
    """
    __tablename__ = "kunjungan"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=generate_uuid
    )
    peserta_id: Mapped[str] = mapped_column(String, nullable=False)
    kategori: Mapped[str] = mapped_column(String, nullable=False)
    tanggal_kunjungan: Mapped[date] = mapped_column(Date, nullable=False)
    lokasi: Mapped[str] = mapped_column(String, nullable=False)
    rujuk: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "lokasi IN ('posyandu', 'kunjungan_rumah')",
            name="ck_kunjungan_lokasi_valid",
        ),
        CheckConstraint(
            "kategori IN ('bumil', 'balita', 'remaja', 'produktif', 'lansia')",
            name="ck_kunjungan_kategori_valid",
        ),
        Index("ix_kunjungan_peserta_tanggal", "peserta_id", "tanggal_kunjungan"),
    )
