# posyandu/wizard/controller.py
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Optional

from posyandu.config import Settings, get_settings
from posyandu.exceptions import (
    SessionClosed,
    SubmissionBusy,
    SubmissionRejected,
    ValidationError,
    WizardError,
)
from posyandu.utils.logging import get_logger
from posyandu.wizard.categories import CategorySchema, schema_for
from posyandu.wizard.form_store import ExaminationFormStore
from posyandu.wizard.schema import PemeriksaanFormData, SelectedParticipant
from posyandu.wizard.state import StateError, WizardState
from posyandu.wizard.steps import FIRST_STEP, LAST_STEP, WizardStatus, WizardStep, parse_step
from posyandu.wizard.validation import step_fields, validate_step

if TYPE_CHECKING:
    from posyandu.submission.adapter import SubmissionAdapter

logger = get_logger(__name__)

NOTICE_RESET = "Form berhasil direset"
NOTICE_NOTHING_TO_RESET = "Tidak ada isian yang dapat direset pada langkah ini"
NOTICE_SUBMITTED = "Data pemeriksaan berhasil disimpan"
NOTICE_CANCELLED = "Pemeriksaan dibatalkan"


def errors_from(exc: WizardError) -> List[StateError]:
    """Turn a raised wizard error into the errors carried by the state."""
    field_errors = getattr(exc, "field_errors", [])

    if isinstance(exc, ValidationError) and field_errors:
        return [StateError(exc.code, e["message"], e.get("field")) for e in field_errors]

    errors = [StateError(exc.code, exc.message)]
    errors.extend(StateError(exc.code, e["message"], e.get("field")) for e in field_errors)
    return errors


class ExaminationWizard:
    """
    ExaminationWizard drives the four-step examination flow.

    Steps:
      1. verification  (read-only participant identity)
      2. category exam (measurements of the participant's category)
      3. time/location (visit date, location, referral decision)
      4. confirmation  (review, then submit)

    Every transition takes a WizardState and returns a new one; the input
    state is never modified. Wizard errors raised along the way end up in
    the returned state's `errors`, they never escape a transition.
    """

    def __init__(self, adapter: "SubmissionAdapter", settings: Optional[Settings] = None):
        self.adapter = adapter
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(
        self,
        participant: SelectedParticipant,
        step: Any = None,
        previous: Optional[Mapping[str, Any]] = None,
    ) -> WizardState:
        """
        Open a session for a participant.

        `step` is the position round-tripped through the URL; the wizard
        only lands there when every earlier step passes its checks.
        `previous` is the participant's latest stored examination, used to
        prefill the draft.
        """
        try:
            schema = schema_for(participant.kategori)
        except WizardError as exc:
            logger.error("Aborting wizard for peserta %s: %s", participant.id, exc.message)
            return WizardState(
                participant=participant,
                status=WizardStatus.ABORTED,
                errors=errors_from(exc),
            )

        store = ExaminationFormStore.create(participant, schema, previous=previous, settings=self.settings)
        state = WizardState(participant=participant, draft=store.draft)
        logger.info("Started %s examination for peserta %s", schema.kategori.value, participant.id)

        target = parse_step(step) if step is not None else FIRST_STEP
        return self.resume_at(state, target)

    def resume_at(self, state: WizardState, target: WizardStep) -> WizardState:
        """Walk forward to `target`, stopping at the first step that does not pass."""
        current = state
        while current.step < target:
            following = self.next(current)
            if following.step == current.step:
                return following
            current = following
        return current

    def edit(self, state: WizardState, field: str, value: Any) -> WizardState:
        return self._mutate(state, lambda store: store.update(field, value))

    def edit_many(self, state: WizardState, values: Mapping[str, Any]) -> WizardState:
        def apply(store: ExaminationFormStore) -> None:
            for field, value in values.items():
                store.update(field, value)

        return self._mutate(state, apply)

    def set_tags(self, state: WizardState, field: str, tags: Iterable[str]) -> WizardState:
        return self._mutate(state, lambda store: store.update_tag_set(field, tags))

    def toggle_tag(self, state: WizardState, field: str, tag: str) -> WizardState:
        return self._mutate(state, lambda store: store.toggle(field, tag))

    def next(self, state: WizardState) -> WizardState:
        blocked = self._guard(state)
        if blocked is not None:
            return blocked
        if state.step == LAST_STEP:
            return state.evolve()

        schema = schema_for(state.participant.kategori)
        problems = validate_step(state.step, schema, state.participant, state.draft, self.settings)
        if problems:
            logger.info(
                "Step %d blocked for peserta %s: %s",
                state.step, state.participant.id, ", ".join(p["field"] for p in problems),
            )
            return state.evolve(
                errors=[StateError("VALIDATION_ERROR", p["message"], p["field"]) for p in problems],
            )

        following = WizardStep(state.step + 1)
        logger.debug("Step %d -> %d for peserta %s", state.step, following, state.participant.id)
        return state.evolve(step=following)

    def prev(self, state: WizardState) -> WizardState:
        """Go back one step without validating; from the first step this cancels."""
        blocked = self._guard(state)
        if blocked is not None:
            return blocked
        if state.step == FIRST_STEP:
            return self.cancel(state)

        previous = WizardStep(state.step - 1)
        logger.debug("Step %d -> %d for peserta %s", state.step, previous, state.participant.id)
        return state.evolve(step=previous)

    def reset_step(self, state: WizardState, step: Optional[WizardStep] = None) -> WizardState:
        """Clear only the fields owned by `step` (default: the current one)."""
        blocked = self._guard(state)
        if blocked is not None:
            return blocked

        try:
            target = WizardStep(step) if step is not None else state.step
        except (TypeError, ValueError):
            return state.evolve(
                errors=[StateError("VALIDATION_ERROR", f"Langkah tidak dikenal: {step!r}.", "step")],
            )
        schema = schema_for(state.participant.kategori)
        fields = step_fields(target, schema, state.participant)
        if not fields:
            return state.evolve(notice=NOTICE_NOTHING_TO_RESET)

        new = state.evolve(notice=NOTICE_RESET)
        cleared = self._store(new, schema).reset_fields(fields)
        logger.info("Reset step %d (%d field(s)) for peserta %s", target, len(cleared), state.participant.id)
        return new

    def cancel(self, state: WizardState) -> WizardState:
        """Abandon the session. The draft is discarded, nothing is persisted."""
        blocked = self._guard(state)
        if blocked is not None:
            return blocked

        logger.info("Cancelled examination for peserta %s at step %d", state.participant.id, state.step)
        return state.evolve(
            step=FIRST_STEP,
            status=WizardStatus.CANCELLED,
            draft=PemeriksaanFormData(),
            notice=NOTICE_CANCELLED,
        )

    def submit(self, state: WizardState) -> WizardState:
        """Begin and finish a submission in one go."""
        saving = self.begin_submit(state)
        if saving.errors or not saving.is_saving:
            return saving
        return self.finish_submit(saving)

    def begin_submit(self, state: WizardState) -> WizardState:
        """
        Check that the session may submit and enter the saving state.

        Callers that hold sessions across requests store the returned
        state before calling finish_submit, so a second submit sees the
        session as busy.
        """
        blocked = self._guard(state)
        if blocked is not None:
            return blocked

        if state.step != LAST_STEP:
            return state.evolve(errors=[StateError(
                "NOT_ON_CONFIRMATION",
                "Data hanya dapat disimpan dari langkah konfirmasi",
            )])

        schema = schema_for(state.participant.kategori)
        problems = []
        for step in (WizardStep.CATEGORY_EXAM, WizardStep.TIME_LOCATION):
            problems.extend(validate_step(step, schema, state.participant, state.draft, self.settings))
        if problems:
            return state.evolve(
                errors=[StateError("VALIDATION_ERROR", p["message"], p["field"]) for p in problems],
            )

        return state.evolve(status=WizardStatus.SAVING)

    def finish_submit(self, state: WizardState) -> WizardState:
        if not state.is_saving:
            return self._guard(state) or state.evolve(errors=[StateError(
                "NOT_SAVING", "Tidak ada penyimpanan yang sedang berjalan",
            )])

        payload = self.adapter.build(state.participant, state.draft)
        result = self.adapter.submit(payload)

        if result.ok:
            logger.info("Submitted examination %s for peserta %s", result.record_id, state.participant.id)
            return state.evolve(
                status=WizardStatus.SUBMITTED,
                record_id=result.record_id,
                notice=NOTICE_SUBMITTED,
            )

        error = result.error
        if isinstance(error, SubmissionRejected) and error.field_errors:
            first = error.field_errors[0]
            errors = [StateError(error.code, first["message"])]
            errors.extend(StateError(error.code, e["message"], e.get("field")) for e in error.field_errors)
        else:
            errors = errors_from(error)
        return state.evolve(status=WizardStatus.ACTIVE, errors=errors)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _guard(self, state: WizardState) -> Optional[WizardState]:
        """A state carrying the error when the session cannot take transitions."""
        if state.is_saving:
            exc: WizardError = SubmissionBusy(message="Data sedang disimpan, mohon tunggu")
        elif not state.is_open:
            exc = SessionClosed(message="Sesi pemeriksaan ini sudah ditutup")
        else:
            return None
        return state.evolve(errors=errors_from(exc), notice=state.notice)

    def _store(self, state: WizardState, schema: CategorySchema) -> ExaminationFormStore:
        return ExaminationFormStore(state.draft, schema, settings=self.settings)

    def _mutate(self, state: WizardState, change) -> WizardState:
        blocked = self._guard(state)
        if blocked is not None:
            return blocked

        schema = schema_for(state.participant.kategori)
        new = state.evolve()
        try:
            change(self._store(new, schema))
        except WizardError as exc:
            logger.debug("Edit rejected for peserta %s: %s", state.participant.id, exc.message)
            return state.evolve(errors=errors_from(exc))
        return new
