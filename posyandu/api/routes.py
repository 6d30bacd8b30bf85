# posyandu/api/routes.py
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from posyandu.exceptions import UnknownCategory
from posyandu.services import ExaminationSessionService
from posyandu.wizard.categories import schema_for
from posyandu.wizard.state import WizardState
from posyandu.wizard.steps import WizardStatus, WizardStep
from posyandu.wizard.summary import build_summary
from .schemas import (
    CategoryInfo,
    EditFieldsRequest,
    ResetStepRequest,
    SetTagsRequest,
    StartExaminationRequest,
    StateErrorSchema,
    ToggleTagRequest,
    WizardStateResponse,
)

router = APIRouter(prefix="/examinations/wizard", tags=["examinations"])


@lru_cache(maxsize=1)
def get_service() -> ExaminationSessionService:
    return ExaminationSessionService()


def _category_info(kategori: Optional[str]) -> Optional[CategoryInfo]:
    try:
        schema = schema_for(kategori)
    except UnknownCategory:
        return None
    return CategoryInfo(label=schema.label, description=schema.description, url_slug=schema.url_slug)


def _to_response(session_id: str, state: WizardState) -> WizardStateResponse:
    participant = state.participant
    summary = None
    if state.step == WizardStep.CONFIRMATION and state.status != WizardStatus.ABORTED:
        summary = build_summary(participant, state.draft)

    return WizardStateResponse(
        session_id=session_id,
        peserta_id=participant.id if participant else None,
        kategori=participant.kategori if participant else None,
        category=_category_info(participant.kategori) if participant else None,
        step=int(state.step),
        status=state.status.value,
        location=state.location,
        errors=[StateErrorSchema(**e.to_dict()) for e in state.errors],
        notice=state.notice,
        record_id=state.record_id,
        draft=state.draft.model_dump(),
        summary=summary,
    )


def _found(session_id: str, state) -> WizardStateResponse:
    if state is None:
        raise HTTPException(
            status_code=404,
            detail="Examination session not found. Start a new examination.",
        )
    return _to_response(session_id, state)


@router.post("/start", response_model=WizardStateResponse)
def start_examination(
    payload: StartExaminationRequest,
    service: ExaminationSessionService = Depends(get_service),
) -> WizardStateResponse:
    """
    Open a wizard session for an already resolved participant.
    Optionally resume at `step` and prefill from the latest visit.
    """
    session_id, state = service.start_session(
        payload.participant,
        step=payload.step,
        prefill=payload.prefill,
    )
    return _to_response(session_id, state)


@router.get("/{session_id}", response_model=WizardStateResponse)
def get_examination(
    session_id: str,
    service: ExaminationSessionService = Depends(get_service),
) -> WizardStateResponse:
    return _found(session_id, service.get(session_id))


@router.patch("/{session_id}/fields", response_model=WizardStateResponse)
def edit_fields(
    session_id: str,
    payload: EditFieldsRequest,
    service: ExaminationSessionService = Depends(get_service),
) -> WizardStateResponse:
    return _found(session_id, service.edit(session_id, payload.values))


@router.put("/{session_id}/tags/{field}", response_model=WizardStateResponse)
def set_tags(
    session_id: str,
    field: str,
    payload: SetTagsRequest,
    service: ExaminationSessionService = Depends(get_service),
) -> WizardStateResponse:
    return _found(session_id, service.set_tags(session_id, field, payload.tags))


@router.post("/{session_id}/tags/{field}/toggle", response_model=WizardStateResponse)
def toggle_tag(
    session_id: str,
    field: str,
    payload: ToggleTagRequest,
    service: ExaminationSessionService = Depends(get_service),
) -> WizardStateResponse:
    return _found(session_id, service.toggle_tag(session_id, field, payload.tag))


@router.post("/{session_id}/next", response_model=WizardStateResponse)
def next_step(
    session_id: str,
    service: ExaminationSessionService = Depends(get_service),
) -> WizardStateResponse:
    return _found(session_id, service.next(session_id))


@router.post("/{session_id}/prev", response_model=WizardStateResponse)
def prev_step(
    session_id: str,
    service: ExaminationSessionService = Depends(get_service),
) -> WizardStateResponse:
    return _found(session_id, service.prev(session_id))


@router.post("/{session_id}/reset", response_model=WizardStateResponse)
def reset_step(
    session_id: str,
    payload: Optional[ResetStepRequest] = None,
    service: ExaminationSessionService = Depends(get_service),
) -> WizardStateResponse:
    step = WizardStep(payload.step) if payload and payload.step is not None else None
    return _found(session_id, service.reset(session_id, step))


@router.post("/{session_id}/cancel", response_model=WizardStateResponse)
def cancel_examination(
    session_id: str,
    service: ExaminationSessionService = Depends(get_service),
) -> WizardStateResponse:
    return _found(session_id, service.cancel(session_id))


@router.post("/{session_id}/submit", response_model=WizardStateResponse)
def submit_examination(
    session_id: str,
    service: ExaminationSessionService = Depends(get_service),
) -> WizardStateResponse:
    return _found(session_id, service.submit(session_id))
