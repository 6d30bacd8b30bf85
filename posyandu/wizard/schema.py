# posyandu/wizard/schema.py
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from posyandu.wizard.vocabularies import (
    ADL_DOMAINS,
    SKRINING_MENTAL_QUESTIONS,
    SKRINING_PUMA_QUESTIONS,
)


def _today() -> str:
    return date.today().isoformat()


def _empty_mental() -> Dict[str, Optional[bool]]:
    return {key: None for key in SKRINING_MENTAL_QUESTIONS}


def _empty_puma() -> Dict[str, Optional[bool]]:
    return {key: None for key in SKRINING_PUMA_QUESTIONS}


def _empty_adl() -> Dict[str, int]:
    return {key: 0 for key in ADL_DOMAINS}


class SelectedParticipant(BaseModel):
    """
    Participant record resolved by the lookup collaborator before the
    wizard opens. Read-only for the whole session.

    `kategori` is kept as a plain string: the registry decides whether it
    is supported, so an unexpected value can be reported instead of
    failing at parse time.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    nik: str
    nama: str
    kategori: str
    tanggal_lahir: Optional[str] = None
    jenis_kelamin: Optional[str] = None

    alamat: Optional[str] = None
    rt: Optional[str] = None
    rw: Optional[str] = None
    telepon: Optional[str] = None
    kepesertaan_bpjs: bool = False
    nomor_bpjs: Optional[str] = None

    # category reference fields
    nama_suami: Optional[str] = None
    nama_ortu: Optional[str] = None
    pekerjaan: Optional[str] = None
    tinggi_badan: Optional[str] = None

    # category-specific registry data (history tags, lifestyle flags, pregnancy data)
    extension: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_female(self) -> bool:
        return (self.jenis_kelamin or "").strip().lower() in {"perempuan", "p"}


class PemeriksaanFormData(BaseModel):
    """
    In-progress examination draft.

    Holds the union of every category's fields; the category schema
    decides which subset is shown, validated and submitted. Numeric
    measurements are kept as the strings the user typed.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    # Visit data (step 3)
    tanggal_kunjungan: str = Field(default_factory=_today)
    lokasi: str = ""
    rujuk: Optional[bool] = None

    # Shared measurements
    berat_badan: str = ""
    tinggi_badan: str = ""
    tekanan_darah: str = ""
    skrining_tbc: List[str] = Field(default_factory=list)

    # Bumil
    hamil_anak_ke: str = ""
    jarak_anak: str = ""
    bb_sebelum_hamil: str = ""
    umur_kehamilan: str = ""
    lila: str = ""
    tablet_darah: Optional[bool] = None
    asi_eksklusif: Optional[bool] = None
    mt_bumil_kek: Optional[bool] = None
    kelas_bumil: Optional[bool] = None
    penyuluhan: List[str] = Field(default_factory=list)

    # Balita
    umur_bulan: str = ""
    kesimpulan_bb: str = ""
    panjang_badan: str = ""
    lingkar_kepala: str = ""
    lingkar_lengan: str = ""
    balita_mendapatkan: List[str] = Field(default_factory=list)
    edukasi_konseling: List[str] = Field(default_factory=list)
    ada_gejala_sakit: Optional[bool] = None

    # Remaja
    riwayat_keluarga: List[str] = Field(default_factory=list)
    perilaku_berisiko: List[str] = Field(default_factory=list)
    lingkar_perut: str = ""
    gula_darah: str = ""
    kadar_hb: str = ""
    skrining_mental: Dict[str, Optional[bool]] = Field(default_factory=_empty_mental)
    edukasi: List[str] = Field(default_factory=list)

    # Produktif / Lansia
    status_perkawinan: str = ""
    riwayat_diri: List[str] = Field(default_factory=list)
    merokok: Optional[bool] = None
    konsumsi_gula: Optional[bool] = None
    konsumsi_garam: Optional[bool] = None
    konsumsi_lemak: Optional[bool] = None
    asam_urat: str = ""
    kolesterol: str = ""
    tes_mata: str = ""
    tes_telinga: str = ""
    alat_kontrasepsi: str = ""
    skrining_puma: Dict[str, Optional[bool]] = Field(default_factory=_empty_puma)
    adl: Dict[str, int] = Field(default_factory=_empty_adl)

    # Derived (recomputed by the form store, never edited directly)
    imt: str = "-"
    jumlah_skor_puma: int = 0
    kesimpulan_puma: str = "Normal"
    jumlah_skor_adl: int = 0
    tingkat_kemandirian: str = "-"
