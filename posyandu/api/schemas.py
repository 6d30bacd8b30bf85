# posyandu/api/schemas.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from posyandu.wizard.schema import SelectedParticipant


class StartExaminationRequest(BaseModel):
    participant: SelectedParticipant
    step: Optional[Union[int, str]] = None
    prefill: bool = True


class EditFieldsRequest(BaseModel):
    values: Dict[str, Any] = Field(default_factory=dict)


class SetTagsRequest(BaseModel):
    tags: List[str]


class ToggleTagRequest(BaseModel):
    tag: str


class ResetStepRequest(BaseModel):
    step: Optional[int] = Field(None, ge=1, le=4)


class StateErrorSchema(BaseModel):
    code: str
    field: Optional[str] = None
    message: str


class SummaryRow(BaseModel):
    label: str
    value: str


class CategoryInfo(BaseModel):
    label: str
    description: str
    url_slug: str


class WizardStateResponse(BaseModel):
    session_id: str
    peserta_id: Optional[str]
    kategori: Optional[str]
    category: Optional[CategoryInfo] = None
    step: int
    status: str
    location: str
    errors: List[StateErrorSchema]
    notice: Optional[str] = None
    record_id: Optional[str] = None
    draft: Dict[str, Any]
    summary: Optional[Dict[str, List[SummaryRow]]] = None
