# posyandu/wizard/validation.py
"""
Step gating rules. Mirrors the business rules the backend enforces so the
wizard can stop early; the backend stays authoritative.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Dict, List, Tuple

from posyandu.config import Settings
from posyandu.wizard.categories import DERIVED_FIELDS, FIELD_LABELS, VISIT_FIELDS, CategorySchema
from posyandu.wizard.schema import PemeriksaanFormData, SelectedParticipant
from posyandu.wizard.scoring import parse_number
from posyandu.wizard.steps import WizardStep
from posyandu.wizard.vocabularies import LOKASI

FieldError = Dict[str, str]

BLOOD_PRESSURE_RE = re.compile(r"^\d{2,3}/\d{2,3}$")
INTEGER_RE = re.compile(r"^\d+$")


def _label(field: str) -> str:
    return FIELD_LABELS.get(field, field)


def step_fields(
    step: WizardStep,
    schema: CategorySchema,
    participant: SelectedParticipant,
) -> Tuple[str, ...]:
    """Editable fields owned by a step."""
    if step == WizardStep.CATEGORY_EXAM:
        return tuple(
            f for f in schema.fields_for(participant.is_female) if f not in DERIVED_FIELDS
        )
    if step == WizardStep.TIME_LOCATION:
        return VISIT_FIELDS
    return ()


def _validate_exam(
    schema: CategorySchema,
    participant: SelectedParticipant,
    draft: PemeriksaanFormData,
) -> List[FieldError]:
    errors: List[FieldError] = []
    active = set(schema.fields_for(participant.is_female))

    for name in schema.required_fields:
        if not str(getattr(draft, name) or "").strip():
            errors.append({"field": name, "message": f"Mohon isi {_label(name)} terlebih dahulu"})

    missing = {e["field"] for e in errors}

    for name in schema.numeric_fields:
        raw = getattr(draft, name)
        if name in missing or not raw:
            continue
        value = parse_number(raw)
        if value is None or value < 0:
            errors.append({"field": name, "message": f"{_label(name)} harus berupa angka"})
        elif name == "berat_badan" and value == 0:
            errors.append({"field": name, "message": f"{_label(name)} harus lebih dari 0"})

    for name in schema.integer_fields:
        raw = getattr(draft, name)
        if name in missing or not raw:
            continue
        if not INTEGER_RE.match(raw):
            errors.append({"field": name, "message": f"{_label(name)} harus berupa bilangan bulat"})

    if "tekanan_darah" in active and draft.tekanan_darah:
        if not BLOOD_PRESSURE_RE.match(draft.tekanan_darah.replace(" ", "")):
            errors.append({
                "field": "tekanan_darah",
                "message": "Tekanan Darah harus berformat sistolik/diastolik, contoh: 120/80",
            })

    for name, vocabulary in schema.choice_vocabularies.items():
        if name not in active:
            continue
        value = getattr(draft, name)
        if value and value not in vocabulary.values:
            errors.append({"field": name, "message": f"Pilihan {_label(name)} tidak valid"})

    return errors


def _validate_visit(draft: PemeriksaanFormData, settings: Settings) -> List[FieldError]:
    errors: List[FieldError] = []

    if not draft.tanggal_kunjungan:
        errors.append({"field": "tanggal_kunjungan", "message": "Mohon isi Tanggal Kunjungan"})
    else:
        try:
            date.fromisoformat(draft.tanggal_kunjungan)
        except ValueError:
            errors.append({
                "field": "tanggal_kunjungan",
                "message": "Tanggal Kunjungan harus berformat YYYY-MM-DD",
            })

    if not draft.lokasi:
        errors.append({"field": "lokasi", "message": "Mohon pilih Lokasi Pemeriksaan"})
    elif draft.lokasi not in LOKASI.values:
        errors.append({"field": "lokasi", "message": "Lokasi Pemeriksaan tidak valid"})

    if settings.require_referral_decision and draft.rujuk is None:
        errors.append({
            "field": "rujuk",
            "message": "Mohon tentukan apakah perlu Rujukan atau tidak",
        })

    return errors


def validate_step(
    step: WizardStep,
    schema: CategorySchema,
    participant: SelectedParticipant,
    draft: PemeriksaanFormData,
    settings: Settings,
) -> List[FieldError]:
    """Field errors blocking advancement from `step`; empty when the step passes."""
    if step == WizardStep.CATEGORY_EXAM:
        return _validate_exam(schema, participant, draft)
    if step == WizardStep.TIME_LOCATION:
        return _validate_visit(draft, settings)
    return []
