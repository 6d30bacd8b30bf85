# posyandu/wizard/summary.py
"""
Review rows shown on the confirmation step.
"""
from __future__ import annotations

from typing import Any, Dict, List

from posyandu.wizard import scoring
from posyandu.wizard.categories import DERIVED_FIELDS, FIELD_LABELS, CategorySchema, schema_for
from posyandu.wizard.schema import PemeriksaanFormData, SelectedParticipant
from posyandu.wizard.vocabularies import (
    ADL_DOMAINS,
    IMT,
    LOKASI,
    SKRINING_MENTAL_QUESTIONS,
    SKRINING_PUMA_QUESTIONS,
    TINGKAT_KEMANDIRIAN,
)

Row = Dict[str, str]

EMPTY = "-"


def _row(label: str, value: Any) -> Row:
    return {"label": label, "value": _display(value)}


def _display(value: Any) -> str:
    if value is None or value == "" or value == []:
        return EMPTY
    if isinstance(value, bool):
        return "Ya" if value else "Tidak"
    if isinstance(value, list):
        return ", ".join(value)
    return str(value)


def _rujuk_label(rujuk) -> str:
    if rujuk is None:
        return "Belum ditentukan"
    return "Ya, rujuk ke Faskes" if rujuk else "Tidak"


def _answers(answers: Dict[str, Any], questions: Dict[str, str]) -> str:
    yes = [questions[k] for k in questions if answers.get(k) is True]
    return "; ".join(yes) if yes else EMPTY


def _adl_rows(adl: Dict[str, int]) -> List[Row]:
    rows = []
    for key, (label, options) in ADL_DOMAINS.items():
        points = adl.get(key, 0)
        option = dict(options).get(points)
        value = f"{points} - {option}" if option else str(points)
        rows.append(_row(label, value))
    return rows


def _exam_rows(schema: CategorySchema, participant: SelectedParticipant, draft: PemeriksaanFormData) -> List[Row]:
    rows: List[Row] = []
    for name in schema.fields_for(participant.is_female):
        if name in DERIVED_FIELDS:
            continue
        value = getattr(draft, name)
        label = FIELD_LABELS.get(name, name)

        if name == "skrining_mental":
            rows.append(_row(label, _answers(value, SKRINING_MENTAL_QUESTIONS)))
        elif name == "skrining_puma":
            rows.append(_row(label, _answers(value, SKRINING_PUMA_QUESTIONS)))
        elif name == "adl":
            rows.extend(_adl_rows(value))
        elif name == "kesimpulan_bb":
            rows.append(_row(label, scoring.compute_weight_conclusion(value)))
        elif name in schema.choice_vocabularies:
            rows.append(_row(label, schema.choice_vocabularies[name].label_for(value) or value))
        else:
            rows.append(_row(label, value))
    return rows


def _result_rows(schema: CategorySchema, draft: PemeriksaanFormData) -> List[Row]:
    rows: List[Row] = []
    for name in schema.derived_fields:
        value = getattr(draft, name)
        if name == "imt":
            value = IMT.label_for(value) or value
        elif name == "tingkat_kemandirian":
            value = TINGKAT_KEMANDIRIAN.label_for(value) or value
        rows.append(_row(FIELD_LABELS.get(name, name), value))
    return rows


def build_summary(participant: SelectedParticipant, draft: PemeriksaanFormData) -> Dict[str, List[Row]]:
    """
    Confirmation rows grouped by section.

    Sections: peserta (identity), kunjungan (visit data), pemeriksaan
    (category measurements) and hasil (derived scores). Sections without
    rows are left out.
    """
    schema = schema_for(participant.kategori)

    peserta = [
        _row("Nama", participant.nama),
        _row("NIK", participant.nik),
        _row("Kategori", schema.label),
        _row("Tanggal Lahir", participant.tanggal_lahir),
        _row("Jenis Kelamin", participant.jenis_kelamin),
        _row("Alamat", participant.alamat),
        _row("BPJS", participant.nomor_bpjs if participant.kepesertaan_bpjs else "Tidak"),
    ]
    if participant.nama_suami:
        peserta.append(_row("Nama Suami", participant.nama_suami))
    if participant.nama_ortu:
        peserta.append(_row("Nama Orang Tua", participant.nama_ortu))
    if participant.pekerjaan:
        peserta.append(_row("Pekerjaan", participant.pekerjaan))

    kunjungan = [
        _row(FIELD_LABELS["tanggal_kunjungan"], draft.tanggal_kunjungan),
        _row(FIELD_LABELS["lokasi"], LOKASI.label_for(draft.lokasi) or draft.lokasi),
        _row(FIELD_LABELS["rujuk"], _rujuk_label(draft.rujuk)),
    ]

    sections = {
        "peserta": peserta,
        "kunjungan": kunjungan,
        "pemeriksaan": _exam_rows(schema, participant, draft),
        "hasil": _result_rows(schema, draft),
    }
    return {name: rows for name, rows in sections.items() if rows}
