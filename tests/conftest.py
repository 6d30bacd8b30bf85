"""
Shared fixtures for all tests.

Participants per category, an in-memory SQLite store and a fake sink live
here so both unit/ and integration/ can use them.
"""
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from posyandu.config import Settings, get_settings
from posyandu.db import Base
from posyandu.submission import ExaminationPayload, SqlAlchemyExaminationStore, SubmissionAdapter
from posyandu.submission.sink import ExaminationSink
from posyandu.wizard import ExaminationWizard, SelectedParticipant
import posyandu.models  # noqa: F401


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class MemorySink(ExaminationSink):
    """Keeps payloads in a list; raises `error` instead when it is set."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.saved: List[ExaminationPayload] = []
        self.previous: Dict[str, Dict[str, Any]] = {}

    def save(self, payload: ExaminationPayload) -> str:
        if self.error is not None:
            raise self.error
        self.saved.append(payload)
        return f"rec-{len(self.saved)}"

    def latest_for(self, peserta_id: str) -> Optional[Dict[str, Any]]:
        return self.previous.get(peserta_id)


def make_participant(kategori: str, **overrides) -> SelectedParticipant:
    data: Dict[str, Any] = {
        "id": f"peserta-{kategori}",
        "nik": "3201010101010001",
        "nama": f"Peserta {kategori.title()}",
        "kategori": kategori,
        "tanggal_lahir": "1990-01-01",
        "jenis_kelamin": "Perempuan",
        "alamat": "Jl. Melati No. 3",
        "rt": "001",
        "rw": "002",
        "kepesertaan_bpjs": True,
        "nomor_bpjs": "0001234567890",
    }
    data.update(overrides)
    return SelectedParticipant(**data)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def wizard(sink, settings) -> ExaminationWizard:
    return ExaminationWizard(SubmissionAdapter(sink), settings=settings)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> SqlAlchemyExaminationStore:
    return SqlAlchemyExaminationStore(session_factory=session_factory)


@pytest.fixture
def balita() -> SelectedParticipant:
    return make_participant(
        "balita",
        tanggal_lahir="2022-05-10",
        jenis_kelamin="Laki-laki",
        nama_ortu="Siti Aminah",
    )


@pytest.fixture
def bumil() -> SelectedParticipant:
    return make_participant("bumil", nama_suami="Budi Santoso", tinggi_badan="155")


@pytest.fixture
def remaja_putri() -> SelectedParticipant:
    return make_participant("remaja", tanggal_lahir="2010-03-03")


@pytest.fixture
def remaja_putra() -> SelectedParticipant:
    return make_participant("remaja", id="peserta-remaja-putra", jenis_kelamin="Laki-laki")


@pytest.fixture
def produktif() -> SelectedParticipant:
    return make_participant("produktif", pekerjaan="Pedagang")


@pytest.fixture
def lansia() -> SelectedParticipant:
    return make_participant(
        "lansia",
        tanggal_lahir="1950-08-17",
        jenis_kelamin="Laki-laki",
        tinggi_badan="160",
    )


def error_codes(state) -> List[str]:
    return [e.code for e in state.errors]


def error_fields(state) -> List[Optional[str]]:
    return [e.field for e in state.errors]
