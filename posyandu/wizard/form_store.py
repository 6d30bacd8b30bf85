# posyandu/wizard/form_store.py
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from posyandu.config import Settings, get_settings
from posyandu.exceptions import ReadOnlyFieldError, ValidationError
from posyandu.utils.logging import get_logger
from posyandu.wizard import scoring
from posyandu.wizard.categories import (
    DERIVED_FIELDS,
    SCREENING_MAPS,
    CategorySchema,
    all_schemas,
)
from posyandu.wizard.schema import PemeriksaanFormData, SelectedParticipant
from posyandu.wizard.tags import reduce_tags, toggle_tag
from posyandu.wizard.vocabularies import (
    ADL_DOMAINS,
    SKRINING_MENTAL_QUESTIONS,
    SKRINING_PUMA_QUESTIONS,
    TagVocabulary,
)

logger = get_logger(__name__)

Recompute = Callable[["ExaminationFormStore"], None]


def _recompute_bmi(store: "ExaminationFormStore") -> None:
    draft = store.draft
    draft.imt = scoring.compute_bmi_bucket(
        draft.tinggi_badan, draft.berat_badan, bands=store.settings.bmi_bands
    )


def _recompute_puma(store: "ExaminationFormStore") -> None:
    draft = store.draft
    score = scoring.compute_copd_risk_score(draft.skrining_puma)
    draft.jumlah_skor_puma = score
    draft.kesimpulan_puma = scoring.classify_copd_risk(
        score, threshold=store.settings.puma_referral_threshold
    )


def _recompute_adl(store: "ExaminationFormStore") -> None:
    draft = store.draft
    score = scoring.compute_independence_score(draft.adl)
    draft.jumlah_skor_adl = score
    if not any(points for points in draft.adl.values()):
        # no domain answered yet
        draft.tingkat_kemandirian = scoring.PLACEHOLDER
        return
    draft.tingkat_kemandirian = scoring.classify_independence(
        score, bands=store.settings.adl_bands
    )


# Source field -> recompute functions that must run after it changes.
DEPENDENCIES: Dict[str, Tuple[Recompute, ...]] = {
    "tinggi_badan": (_recompute_bmi,),
    "berat_badan": (_recompute_bmi,),
    "skrining_puma": (_recompute_puma,),
    "adl": (_recompute_adl,),
}

ALL_RECOMPUTES: Tuple[Recompute, ...] = (_recompute_bmi, _recompute_puma, _recompute_adl)

_SCREENING_KEYS: Dict[str, Tuple[str, ...]] = {
    "skrining_mental": tuple(SKRINING_MENTAL_QUESTIONS),
    "skrining_puma": tuple(SKRINING_PUMA_QUESTIONS),
    "adl": tuple(ADL_DOMAINS),
}


def _field_error(field: str, message: str, code: str = "VALIDATION_ERROR") -> ValidationError:
    return ValidationError(
        message=message,
        code=code,
        detail={"errors": [{"field": field, "message": message}]},
    )


def _as_form_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        raise TypeError("boolean is not a text value")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _decode_flags(raw: Any, keys: Iterable[str], base: Mapping[str, Optional[bool]]) -> Dict[str, Optional[bool]]:
    """Stored screening answers come back either as the list of affirmative keys or as a map."""
    keys = tuple(keys)
    if isinstance(raw, (list, tuple)):
        return {key: key in raw for key in keys}
    if isinstance(raw, Mapping):
        merged = dict(base)
        merged.update({k: v for k, v in raw.items() if k in keys})
        return merged
    return dict(base)


def _decode_adl(raw: Any) -> Dict[str, int]:
    """ADL comes back as ["mobilitas:3", ...] or as a map."""
    result = {key: 0 for key in ADL_DOMAINS}
    if isinstance(raw, (list, tuple)):
        for item in raw:
            key, _, points = str(item).partition(":")
            if key in result:
                try:
                    result[key] = int(points)
                except ValueError:
                    continue
    elif isinstance(raw, Mapping):
        for key, points in raw.items():
            if key in result:
                try:
                    result[key] = int(points)
                except (TypeError, ValueError):
                    continue
    return result


class ExaminationFormStore:
    """
    Owns one examination draft and applies edits to it.

    Every mutation runs through `update` (or one of the per-field helpers
    built on it), after which the dependency table recomputes the derived
    fields. Nothing here talks to the network or navigates.
    """

    def __init__(
        self,
        draft: PemeriksaanFormData,
        schema: CategorySchema,
        settings: Optional[Settings] = None,
    ):
        self.draft = draft
        self.schema = schema
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        participant: SelectedParticipant,
        schema: CategorySchema,
        previous: Optional[Mapping[str, Any]] = None,
        settings: Optional[Settings] = None,
    ) -> "ExaminationFormStore":
        """
        New draft for a participant: seeded from the participant record,
        then (optionally) pre-filled from their latest stored visit.
        """
        store = cls(PemeriksaanFormData(), schema, settings=settings)
        store.seed_from_participant(participant)
        if previous:
            store.prefill_from_record(previous)
        store.recompute_all()
        return store

    def seed_from_participant(self, participant: SelectedParticipant) -> None:
        seed: Dict[str, Any] = dict(participant.extension)
        if participant.tinggi_badan:
            seed.setdefault("tinggi_badan", participant.tinggi_badan)
        self._apply_record(seed, use_aliases=False)

    def prefill_from_record(self, record: Mapping[str, Any]) -> None:
        applied = self._apply_record(record, use_aliases=True)
        logger.debug("Prefilled %d field(s) from previous visit", len(applied))

    def _apply_record(self, record: Mapping[str, Any], use_aliases: bool) -> List[str]:
        applied = []
        for name in self.schema.exam_fields:
            if name in DERIVED_FIELDS:
                continue
            key = self.schema.payload_name(name) if use_aliases else name
            raw = record.get(key, record.get(name))
            if raw is None or raw == "" or raw == []:
                continue

            current = getattr(self.draft, name)
            try:
                if name == "adl":
                    value: Any = _decode_adl(raw)
                elif name in SCREENING_MAPS:
                    value = _decode_flags(raw, _SCREENING_KEYS[name], current)
                elif isinstance(current, list):
                    tags = list(raw) if isinstance(raw, (list, tuple)) else [raw]
                    value = self._reduce(name, [], tags)
                elif isinstance(current, str):
                    value = _as_form_text(raw)
                else:
                    value = raw
                setattr(self.draft, name, value)
            except (TypeError, ValidationError, PydanticValidationError):
                logger.warning("Ignoring stored value for %s: %r", name, raw)
                continue
            applied.append(name)
        return applied

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def update(self, field: str, value: Any) -> PemeriksaanFormData:
        """Set one field, then recompute whatever depends on it."""
        if field not in PemeriksaanFormData.model_fields:
            raise _field_error(field, f"Kolom tidak dikenal: {field}.", code="UNKNOWN_FIELD")
        if field in DERIVED_FIELDS:
            raise ReadOnlyFieldError(
                message=f"{field} dihitung otomatis dan tidak dapat diubah.",
                detail={"errors": [{"field": field, "message": "Kolom hasil perhitungan."}]},
            )

        current = getattr(self.draft, field)
        if isinstance(current, list):
            if not isinstance(value, (list, tuple)):
                raise _field_error(field, "Pilihan harus berupa daftar.")
            value = self._reduce(field, current, list(value))
        elif field in SCREENING_MAPS:
            if not isinstance(value, Mapping):
                raise _field_error(field, "Jawaban skrining harus berupa objek.")
            unknown = [k for k in value if k not in _SCREENING_KEYS[field]]
            if unknown:
                raise _field_error(field, f"Pertanyaan tidak dikenal: {', '.join(unknown)}.")
            if field == "adl":
                merged: Dict[str, Any] = dict(current)
                merged.update({k: self._adl_points(k, v) for k, v in value.items()})
            else:
                merged = dict(current)
                merged.update(value)
            value = merged
        elif isinstance(current, str):
            try:
                value = _as_form_text(value)
            except TypeError:
                raise _field_error(field, "Nilai harus berupa teks atau angka.") from None

        try:
            setattr(self.draft, field, value)
        except PydanticValidationError as exc:
            first = exc.errors()[0]["msg"] if exc.errors() else "Nilai tidak valid."
            raise _field_error(field, first) from None

        self._recompute_for(field)
        return self.draft

    def update_tag_set(self, field: str, tags: Iterable[str]) -> List[str]:
        """Store a new selection for a tag field, normalised against its none-sentinel."""
        if not isinstance(getattr(self.draft, field, None), list):
            raise _field_error(field, f"{field} bukan kolom pilihan ganda.", code="UNKNOWN_FIELD")
        if not isinstance(tags, (list, tuple)):
            raise _field_error(field, "Pilihan harus berupa daftar.")
        self.update(field, list(tags))
        return getattr(self.draft, field)

    def toggle(self, field: str, tag: str) -> List[str]:
        current = getattr(self.draft, field, None)
        if not isinstance(current, list):
            raise _field_error(field, f"{field} bukan kolom pilihan ganda.", code="UNKNOWN_FIELD")
        if not isinstance(tag, str):
            raise _field_error(field, "Setiap pilihan harus berupa teks.")
        vocabulary = self._vocabulary(field)
        sentinel = vocabulary.none_sentinel if vocabulary else None
        setattr(self.draft, field, toggle_tag(current, tag, sentinel, vocabulary))
        self._recompute_for(field)
        return getattr(self.draft, field)

    def update_mental(self, key: str, value: Optional[bool]) -> PemeriksaanFormData:
        return self.update("skrining_mental", {key: value})

    def update_puma(self, key: str, value: Optional[bool]) -> PemeriksaanFormData:
        return self.update("skrining_puma", {key: value})

    def update_adl(self, key: str, value: Any) -> PemeriksaanFormData:
        return self.update("adl", {key: value})

    def reset_fields(self, fields: Iterable[str]) -> List[str]:
        """Restore the given fields to their empty defaults; derived fields follow."""
        blank = PemeriksaanFormData()
        cleared = []
        for name in fields:
            if name in DERIVED_FIELDS:
                continue
            setattr(self.draft, name, getattr(blank, name))
            cleared.append(name)
        self.recompute_all()
        return cleared

    def recompute_all(self) -> None:
        for recompute in ALL_RECOMPUTES:
            recompute(self)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _recompute_for(self, field: str) -> None:
        for recompute in DEPENDENCIES.get(field, ()):
            recompute(self)

    def _vocabulary(self, field: str) -> Optional[TagVocabulary]:
        vocabulary = self.schema.tag_vocabularies.get(field)
        if vocabulary is not None:
            return vocabulary
        for schema in all_schemas():
            if field in schema.tag_vocabularies:
                return schema.tag_vocabularies[field]
        return None

    def _reduce(self, field: str, previous: List[str], incoming: List[str]) -> List[str]:
        if any(not isinstance(tag, str) for tag in incoming):
            raise _field_error(field, "Setiap pilihan harus berupa teks.")
        return reduce_tags(previous, incoming, self._vocabulary(field))

    @staticmethod
    def _adl_points(key: str, value: Any) -> int:
        if value is None or value == "":
            return 0
        if isinstance(value, bool):
            raise _field_error("adl", f"Skor {key} harus berupa angka.")
        try:
            points = int(value)
        except (TypeError, ValueError):
            raise _field_error("adl", f"Skor {key} harus berupa angka.") from None
        if points < 0:
            raise _field_error("adl", f"Skor {key} tidak boleh negatif.")
        return points
