# posyandu/submission/payload.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from posyandu.wizard.categories import schema_for
from posyandu.wizard.schema import PemeriksaanFormData, SelectedParticipant
from posyandu.wizard.scoring import PLACEHOLDER


class ExaminationPayload(BaseModel):
    """
    Finished examination as handed to the persistence collaborator.

    The visit metadata is always present (`rujuk` may be None, meaning
    "not decided"); category fields ride along as extra keys and are
    only present when filled in.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    peserta_id: str
    kategori: str
    tanggal_kunjungan: str
    lokasi: str
    rujuk: Optional[bool] = None

    def as_request(self) -> Dict[str, Any]:
        return self.model_dump()

    @property
    def category_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


def _affirmative_keys(answers: Dict[str, Optional[bool]]) -> List[str]:
    return [key for key, value in answers.items() if value is True]


def _adl_items(adl: Dict[str, int]) -> List[str]:
    return [f"{key}:{points}" for key, points in adl.items() if points > 0]


def _encode(name: str, value: Any) -> Any:
    if name in ("skrining_mental", "skrining_puma"):
        return _affirmative_keys(value)
    if name == "adl":
        return _adl_items(value)
    if isinstance(value, list):
        return list(value)
    return value


def _is_absent(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == PLACEHOLDER


def build_payload(participant: SelectedParticipant, draft: PemeriksaanFormData) -> ExaminationPayload:
    """
    Assemble the submission from the participant and the draft.

    Only fields of the participant's category (and sex, for the
    sex-specific ones) are included; absent values are left out.
    """
    schema = schema_for(participant.kategori)

    fields: Dict[str, Any] = {}
    for name in schema.fields_for(participant.is_female):
        encoded = _encode(name, getattr(draft, name))
        if _is_absent(encoded):
            continue
        fields[schema.payload_name(name)] = encoded

    return ExaminationPayload(
        peserta_id=participant.id,
        kategori=schema.kategori.value,
        tanggal_kunjungan=draft.tanggal_kunjungan,
        lokasi=draft.lokasi,
        rujuk=draft.rujuk,
        **fields,
    )
