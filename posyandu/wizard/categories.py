# posyandu/wizard/categories.py
"""
Category schema registry.

Single source of truth for which examination fields exist per participant
category, which of them gate step 2, which vocabularies apply, and how
fields are named in the submitted payload.

Adding a category: declare a CategorySchema below and register it in
_REGISTRY. The form store, validator and submission adapter only ever
read from here.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Tuple, Union

from posyandu.exceptions import UnknownCategory
from posyandu.wizard import vocabularies as vocab


class Kategori(str, Enum):
    BUMIL = "bumil"
    BALITA = "balita"
    REMAJA = "remaja"
    PRODUKTIF = "produktif"
    LANSIA = "lansia"


# Step 3 fields, shared by every category.
VISIT_FIELDS: Tuple[str, ...] = ("tanggal_kunjungan", "lokasi", "rujuk")

# Field -> dependency group recomputed by the form store.
DERIVED_FIELDS: FrozenSet[str] = frozenset({
    "imt",
    "jumlah_skor_puma",
    "kesimpulan_puma",
    "jumlah_skor_adl",
    "tingkat_kemandirian",
})

SCREENING_MAPS: FrozenSet[str] = frozenset({"skrining_mental", "skrining_puma", "adl"})

FIELD_LABELS: Dict[str, str] = {
    "tanggal_kunjungan": "Tanggal Kunjungan",
    "lokasi": "Lokasi Pemeriksaan",
    "rujuk": "Rujuk ke Faskes",
    "berat_badan": "Berat Badan (kg)",
    "tinggi_badan": "Tinggi Badan (cm)",
    "tekanan_darah": "Tekanan Darah (mmHg)",
    "skrining_tbc": "Skrining TBC",
    "hamil_anak_ke": "Hamil Anak Ke",
    "jarak_anak": "Jarak Anak Sebelumnya",
    "bb_sebelum_hamil": "BB Sebelum Hamil (kg)",
    "umur_kehamilan": "Umur Kehamilan (minggu)",
    "lila": "LILA (cm)",
    "tablet_darah": "Mendapat Tablet Tambah Darah",
    "asi_eksklusif": "Konseling ASI Eksklusif",
    "mt_bumil_kek": "MT Bumil KEK",
    "kelas_bumil": "Ikut Kelas Bumil",
    "penyuluhan": "Materi Penyuluhan",
    "umur_bulan": "Umur (bulan)",
    "kesimpulan_bb": "Kesimpulan Berat Badan",
    "panjang_badan": "Panjang Badan (cm)",
    "lingkar_kepala": "Lingkar Kepala (cm)",
    "lingkar_lengan": "Lingkar Lengan (cm)",
    "balita_mendapatkan": "Balita Mendapatkan",
    "edukasi_konseling": "Edukasi & Konseling",
    "ada_gejala_sakit": "Ada Gejala Sakit",
    "riwayat_keluarga": "Riwayat Penyakit Keluarga",
    "perilaku_berisiko": "Perilaku Berisiko",
    "imt": "IMT",
    "lingkar_perut": "Lingkar Perut (cm)",
    "gula_darah": "Gula Darah (mg/dL)",
    "kadar_hb": "Kadar HB",
    "skrining_mental": "Skrining Mental",
    "edukasi": "Edukasi",
    "status_perkawinan": "Status Perkawinan",
    "riwayat_diri": "Riwayat Penyakit Diri",
    "merokok": "Merokok",
    "konsumsi_gula": "Konsumsi Gula >4 sdm/hari",
    "konsumsi_garam": "Konsumsi Garam >1 sdt/hari",
    "konsumsi_lemak": "Konsumsi Lemak >5 sdm/hari",
    "asam_urat": "Asam Urat (mg/dL)",
    "kolesterol": "Kolesterol (mg/dL)",
    "tes_mata": "Tes Mata",
    "tes_telinga": "Tes Telinga",
    "alat_kontrasepsi": "Alat Kontrasepsi",
    "skrining_puma": "Skrining PUMA (PPOK)",
    "jumlah_skor_puma": "Skor PUMA",
    "kesimpulan_puma": "Kesimpulan PUMA",
    "adl": "ADL - Indeks Barthel",
    "jumlah_skor_adl": "Total Skor ADL",
    "tingkat_kemandirian": "Tingkat Kemandirian",
}


@dataclass(frozen=True)
class CategorySchema:
    kategori: Kategori
    label: str
    description: str
    url_slug: str
    exam_fields: Tuple[str, ...]
    required_fields: Tuple[str, ...]
    numeric_fields: Tuple[str, ...] = ()
    integer_fields: Tuple[str, ...] = ()
    tag_vocabularies: Dict[str, vocab.TagVocabulary] = field(default_factory=dict)
    choice_vocabularies: Dict[str, vocab.ChoiceVocabulary] = field(default_factory=dict)
    female_only: FrozenSet[str] = frozenset()
    payload_aliases: Dict[str, str] = field(default_factory=dict)

    @property
    def optional_fields(self) -> Tuple[str, ...]:
        return tuple(f for f in self.exam_fields if f not in self.required_fields)

    @property
    def derived_fields(self) -> Tuple[str, ...]:
        return tuple(f for f in self.exam_fields if f in DERIVED_FIELDS)

    def has_field(self, name: str) -> bool:
        return name in self.exam_fields or name in VISIT_FIELDS

    def fields_for(self, is_female: bool) -> Tuple[str, ...]:
        """Exam fields that apply to a participant of the given sex."""
        if is_female:
            return self.exam_fields
        return tuple(f for f in self.exam_fields if f not in self.female_only)

    def payload_name(self, name: str) -> str:
        return self.payload_aliases.get(name, name)


_ADULT_BASE: Tuple[str, ...] = (
    "riwayat_diri",
    "tinggi_badan",
    "berat_badan",
    "imt",
    "lingkar_perut",
    "tekanan_darah",
    "gula_darah",
    "status_perkawinan",
    "asam_urat",
    "kolesterol",
    "tes_mata",
    "tes_telinga",
    "skrining_tbc",
    "merokok",
    "konsumsi_gula",
    "konsumsi_garam",
    "konsumsi_lemak",
)

_ADULT_NUMERIC: Tuple[str, ...] = (
    "tinggi_badan", "berat_badan", "lingkar_perut", "gula_darah", "asam_urat", "kolesterol",
)

_ADULT_CHOICES: Dict[str, vocab.ChoiceVocabulary] = {
    "status_perkawinan": vocab.STATUS_PERKAWINAN,
    "tes_mata": vocab.TES_MATA_TELINGA,
    "tes_telinga": vocab.TES_MATA_TELINGA,
}


BUMIL = CategorySchema(
    kategori=Kategori.BUMIL,
    label="Ibu Hamil",
    description="Ibu Hamil & Masa Nifas",
    url_slug="pregnant",
    exam_fields=(
        "hamil_anak_ke",
        "jarak_anak",
        "bb_sebelum_hamil",
        "tinggi_badan",
        "umur_kehamilan",
        "berat_badan",
        "lila",
        "tekanan_darah",
        "skrining_tbc",
        "tablet_darah",
        "asi_eksklusif",
        "mt_bumil_kek",
        "kelas_bumil",
        "penyuluhan",
    ),
    required_fields=("umur_kehamilan", "berat_badan"),
    numeric_fields=("bb_sebelum_hamil", "tinggi_badan", "berat_badan", "lila"),
    integer_fields=("hamil_anak_ke", "umur_kehamilan"),
    tag_vocabularies={
        "skrining_tbc": vocab.SKRINING_TBC,
        "penyuluhan": vocab.PENYULUHAN_BUMIL,
    },
    payload_aliases={
        "umur_kehamilan": "usia_kehamilan",
        "penyuluhan": "edukasi",
    },
)

BALITA = CategorySchema(
    kategori=Kategori.BALITA,
    label="Bayi & Balita",
    description="Bayi & Anak Usia 0-5 Tahun",
    url_slug="toddler",
    exam_fields=(
        "umur_bulan",
        "kesimpulan_bb",
        "panjang_badan",
        "berat_badan",
        "lingkar_kepala",
        "lingkar_lengan",
        "skrining_tbc",
        "balita_mendapatkan",
        "edukasi_konseling",
        "ada_gejala_sakit",
    ),
    required_fields=("umur_bulan", "berat_badan"),
    numeric_fields=("panjang_badan", "berat_badan", "lingkar_kepala", "lingkar_lengan"),
    integer_fields=("umur_bulan",),
    tag_vocabularies={
        "skrining_tbc": vocab.SKRINING_TBC,
        "balita_mendapatkan": vocab.BALITA_MENDAPATKAN,
        "edukasi_konseling": vocab.EDUKASI_KONSELING,
    },
    choice_vocabularies={"kesimpulan_bb": vocab.KESIMPULAN_BB},
    payload_aliases={"edukasi_konseling": "edukasi"},
)

REMAJA = CategorySchema(
    kategori=Kategori.REMAJA,
    label="Anak Remaja & Sekolah",
    description="Anak Sekolah & Remaja",
    url_slug="adolescent",
    exam_fields=(
        "riwayat_keluarga",
        "perilaku_berisiko",
        "tinggi_badan",
        "berat_badan",
        "imt",
        "lingkar_perut",
        "tekanan_darah",
        "gula_darah",
        "kadar_hb",
        "skrining_tbc",
        "skrining_mental",
        "edukasi",
    ),
    required_fields=("tinggi_badan", "berat_badan"),
    numeric_fields=("tinggi_badan", "berat_badan", "lingkar_perut", "gula_darah"),
    tag_vocabularies={
        "riwayat_keluarga": vocab.RIWAYAT_KELUARGA,
        "perilaku_berisiko": vocab.PERILAKU_BERISIKO,
        "skrining_tbc": vocab.SKRINING_TBC,
        "edukasi": vocab.EDUKASI_REMAJA,
    },
    choice_vocabularies={"kadar_hb": vocab.KADAR_HB},
    female_only=frozenset({"kadar_hb"}),
)

PRODUKTIF = CategorySchema(
    kategori=Kategori.PRODUKTIF,
    label="Usia Produktif",
    description="Usia Dewasa 15-59 Tahun",
    url_slug="productive",
    exam_fields=_ADULT_BASE + (
        "skrining_puma",
        "jumlah_skor_puma",
        "kesimpulan_puma",
        "alat_kontrasepsi",
        "edukasi",
    ),
    required_fields=("tinggi_badan", "berat_badan"),
    numeric_fields=_ADULT_NUMERIC,
    tag_vocabularies={
        "riwayat_diri": vocab.RIWAYAT_DIRI,
        "skrining_tbc": vocab.SKRINING_TBC,
        "edukasi": vocab.EDUKASI_PRODUKTIF,
    },
    choice_vocabularies={**_ADULT_CHOICES, "alat_kontrasepsi": vocab.ALAT_KONTRASEPSI},
    female_only=frozenset({"alat_kontrasepsi"}),
)

LANSIA = CategorySchema(
    kategori=Kategori.LANSIA,
    label="Lansia",
    description="Lanjut Usia > 60 Tahun",
    url_slug="elderly",
    exam_fields=_ADULT_BASE + (
        "adl",
        "jumlah_skor_adl",
        "tingkat_kemandirian",
        "edukasi",
    ),
    required_fields=("tinggi_badan", "berat_badan"),
    numeric_fields=_ADULT_NUMERIC,
    tag_vocabularies={
        "riwayat_diri": vocab.RIWAYAT_DIRI,
        "skrining_tbc": vocab.SKRINING_TBC,
        "edukasi": vocab.EDUKASI_PRODUKTIF,
    },
    choice_vocabularies=dict(_ADULT_CHOICES),
)


_REGISTRY: Dict[Kategori, CategorySchema] = {
    Kategori.BUMIL: BUMIL,
    Kategori.BALITA: BALITA,
    Kategori.REMAJA: REMAJA,
    Kategori.PRODUKTIF: PRODUKTIF,
    Kategori.LANSIA: LANSIA,
}


def schema_for(kategori: Union[Kategori, str]) -> CategorySchema:
    """
    Look up the schema of a participant category.

    Raises:
        UnknownCategory: the key is not one of the five supported categories
    """
    try:
        key = Kategori(kategori)
    except ValueError:
        raise UnknownCategory(
            message=f"Kategori peserta tidak dikenal: {kategori!r}.",
            detail={"known_categories": [k.value for k in Kategori]},
        ) from None
    return _REGISTRY[key]


def all_schemas() -> Tuple[CategorySchema, ...]:
    return tuple(_REGISTRY[k] for k in Kategori)
