# posyandu/wizard/vocabularies.py
"""
Option vocabularies used by the examination forms.

Tag vocabularies are multi-select lists; some of them carry a "none"
sentinel that cannot be combined with other tags. Choice vocabularies
are single-select (value, label) pairs.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple


TBC_NONE = "Tidak ada"
HISTORY_NONE = "Tidak Ada"


@dataclass(frozen=True)
class TagVocabulary:
    options: Tuple[str, ...]
    none_sentinel: Optional[str] = None

    def position(self, tag: str) -> int:
        try:
            return self.options.index(tag)
        except ValueError:
            return len(self.options)


@dataclass(frozen=True)
class ChoiceVocabulary:
    options: Tuple[Tuple[str, str], ...]

    @property
    def values(self) -> Tuple[str, ...]:
        return tuple(value for value, _ in self.options)

    def label_for(self, value: str) -> Optional[str]:
        for option_value, label in self.options:
            if option_value == value:
                return label
        return None


# ── Tag vocabularies ──────────────────────────────────────────────────────

SKRINING_TBC = TagVocabulary(
    options=(
        "Batuk > 2 minggu",
        "Demam > 2 minggu",
        "BB tidak naik",
        "Kontak TBC",
        TBC_NONE,
    ),
    none_sentinel=TBC_NONE,
)

PENYULUHAN_BUMIL = TagVocabulary(
    options=(
        "Isi Piringku",
        "TTD (Tablet Tambah Darah)",
        "Tanda Bahaya Kehamilan",
    ),
)

BALITA_MENDAPATKAN = TagVocabulary(
    options=(
        "ASI Eksklusif",
        "MP ASI",
        "Imunisasi Lengkap",
        "Vitamin A",
        "Obat Cacing",
        "PMT",
    ),
)

EDUKASI_KONSELING = TagVocabulary(
    options=(
        "MP ASI Protein Hewani",
        "PHBS",
    ),
)

RIWAYAT_KELUARGA = TagVocabulary(
    options=(
        "Hipertensi",
        "Diabetes Mellitus",
        "Stroke",
        "Jantung",
        "Asma",
        "Kanker",
        "Kolesterol",
        HISTORY_NONE,
    ),
    none_sentinel=HISTORY_NONE,
)

PERILAKU_BERISIKO = TagVocabulary(
    options=(
        "Merokok",
        "Kurang Aktivitas Fisik",
        "Kurang Sayur dan Buah",
        "Konsumsi Gula/Garam/Lemak Berlebih",
        "Konsumsi Alkohol",
        HISTORY_NONE,
    ),
    none_sentinel=HISTORY_NONE,
)

EDUKASI_REMAJA = TagVocabulary(
    options=(
        "Isi Piringku",
        "Aktivitas Fisik",
        "Anemia Remaja Putri",
        "Bahaya Rokok",
        "Bahaya NAPZA",
    ),
)

RIWAYAT_DIRI = TagVocabulary(
    options=(
        "Hipertensi",
        "Diabetes Mellitus",
        "Stroke",
        "Jantung Koroner",
        "Asma/PPOK",
        "Kanker",
        "Kolesterol Tinggi",
        "Gagal Ginjal",
        "Artritis/Reumatik",
        HISTORY_NONE,
    ),
    none_sentinel=HISTORY_NONE,
)

EDUKASI_PRODUKTIF = TagVocabulary(
    options=(
        "Germas",
        "Penyakit Terbanyak",
        "Lainnya",
    ),
)


# ── Choice vocabularies ───────────────────────────────────────────────────

LOKASI = ChoiceVocabulary(options=(
    ("posyandu", "Posyandu"),
    ("kunjungan_rumah", "Kunjungan Rumah"),
))

KESIMPULAN_BB = ChoiceVocabulary(options=(
    ("NAIK", "Naik"),
    ("TIDAK NAIK", "Tidak Naik"),
    ("BGM", "BGM (Bawah Garis Merah)"),
))

IMT = ChoiceVocabulary(options=(
    ("sangat_kurus", "Sangat Kurus"),
    ("kurus", "Kurus"),
    ("normal", "Normal"),
    ("gemuk", "Gemuk"),
    ("obesitas", "Obesitas"),
))

KADAR_HB = ChoiceVocabulary(options=(
    (">12", "> 12 g/dL (Normal)"),
    ("11-11.9", "11 - 11.9 g/dL (Ringan)"),
    ("8-10.9", "8 - 10.9 g/dL (Sedang)"),
    ("<8", "< 8 g/dL (Berat)"),
))

STATUS_PERKAWINAN = ChoiceVocabulary(options=(
    ("menikah", "Menikah"),
    ("belum_menikah", "Belum Menikah"),
    ("cerai_hidup", "Cerai Hidup"),
    ("cerai_mati", "Cerai Mati"),
))

TES_MATA_TELINGA = ChoiceVocabulary(options=(
    ("normal", "Normal"),
    ("gangguan", "Gangguan"),
))

ALAT_KONTRASEPSI = ChoiceVocabulary(options=(
    ("iud", "IUD"),
    ("implan", "Implan"),
    ("suntik", "Suntik"),
    ("pil", "Pil"),
    ("kondom", "Kondom"),
    ("mow", "MOW"),
    ("menopause", "Menopause"),
    ("tidak_kb", "Tidak KB"),
))

TINGKAT_KEMANDIRIAN = ChoiceVocabulary(options=(
    ("mandiri", "Mandiri"),
    ("ringan", "Ketergantungan Ringan"),
    ("sedang", "Ketergantungan Sedang"),
    ("berat", "Ketergantungan Berat"),
    ("total", "Ketergantungan Total"),
))


# ── Screening questionnaires ──────────────────────────────────────────────

SKRINING_MENTAL_QUESTIONS: Dict[str, str] = {
    "nyamanDirumah": "Merasa nyaman di rumah?",
    "bebanSekolah": "Terbebani tugas sekolah?",
    "sukaTubuh": "Menyukai bentuk tubuh?",
    "temanDiluarGrup": "Punya teman diluar grup?",
    "konsumsiRokokAlkoholNarkoba": "Konsumsi rokok/alkohol/narkoba?",
    "hubunganSeksual": "Pernah hubungan seksual?",
    "tidakAmanLingkungan": "Merasa tidak aman?",
    "inginBunuhDiri": "Keinginan bunuh diri?",
}

# napasPendek, dahakSaatTidakFlu and batukSaatTidakFlu are scored;
# tesSpirometri is recorded but does not count.
SKRINING_PUMA_QUESTIONS: Dict[str, str] = {
    "napasPendek": "Sering napas pendek?",
    "dahakSaatTidakFlu": "Sering berdahak saat tidak flu?",
    "batukSaatTidakFlu": "Sering batuk saat tidak flu?",
    "tesSpirometri": "Sudah tes spirometri?",
}
PUMA_SCORED_ITEMS: Tuple[str, ...] = ("napasPendek", "dahakSaatTidakFlu", "batukSaatTidakFlu")

# ADL (Barthel index), each domain with its ordinal options: (points, label)
ADL_DOMAINS: Dict[str, Tuple[str, Tuple[Tuple[int, str], ...]]] = {
    "pengendalianBab": ("Pengendalian BAB", (
        (0, "Tak terkendali"), (1, "Kadang-kadang"), (2, "Terkendali"),
    )),
    "pengendalianBak": ("Pengendalian BAK", (
        (0, "Tak terkendali"), (1, "Kadang-kadang"), (2, "Mandiri"),
    )),
    "kebersihanDiri": ("Kebersihan Diri", (
        (0, "Butuh pertolongan"), (1, "Mandiri"),
    )),
    "penggunaanWc": ("Penggunaan WC", (
        (0, "Butuh pertolongan"), (1, "Perlu bantuan sebagian"), (2, "Mandiri"),
    )),
    "makanMinum": ("Makan & Minum", (
        (0, "Tidak mampu"), (1, "Ditolong sebagian"), (2, "Mandiri"),
    )),
    "mobilitas": ("Mobilitas", (
        (0, "Tidak mampu"), (1, "Banyak bantuan"), (2, "Bantuan minimal"), (3, "Mandiri"),
    )),
    "berjalanTempatRata": ("Berjalan Tempat Rata", (
        (0, "Tidak mampu"), (1, "Kursi roda"), (2, "Dengan bantuan"), (3, "Mandiri"),
    )),
    "naikTurunTangga": ("Naik/Turun Tangga", (
        (0, "Tidak mampu"), (1, "Butuh pertolongan"), (2, "Mandiri"),
    )),
}
