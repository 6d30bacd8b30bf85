# posyandu/services/wizard_session.py
from __future__ import annotations

import threading
import uuid
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from posyandu.config import Settings, get_settings
from posyandu.exceptions import TransportFailure
from posyandu.submission import SqlAlchemyExaminationStore, SubmissionAdapter
from posyandu.submission.sink import ExaminationSink
from posyandu.utils.logging import get_logger
from posyandu.wizard.controller import ExaminationWizard
from posyandu.wizard.schema import SelectedParticipant
from posyandu.wizard.state import WizardState
from posyandu.wizard.steps import WizardStatus, WizardStep

logger = get_logger(__name__)

_FINISHED = (WizardStatus.CANCELLED, WizardStatus.SUBMITTED)


def init_db(bind=None) -> None:
    """
    Create all tables.
    Call this once at startup (e.g. from the app startup hook).
    """
    from posyandu import models  # noqa: F401  (registers the tables)
    from posyandu.db import Base, engine

    Base.metadata.create_all(bind=bind or engine)


class ExaminationSessionService:
    """
    Service that coordinates:
      - opening wizard sessions (with prefill from the latest stored visit)
      - keeping the current WizardState of each open session in memory
      - running transitions one at a time per service
      - forgetting sessions once they are cancelled or submitted

    Nothing about a session is persisted until it is submitted.
    """

    def __init__(
        self,
        sink: Optional[ExaminationSink] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.sink = sink or SqlAlchemyExaminationStore()
        self.wizard = ExaminationWizard(SubmissionAdapter(self.sink), settings=self.settings)
        self._sessions: Dict[str, WizardState] = {}
        self._lock = threading.Lock()

    def start_session(
        self,
        participant: SelectedParticipant,
        step: Any = None,
        prefill: bool = True,
    ) -> Tuple[str, WizardState]:
        """
        Start a new wizard session.

        Returns:
          - session id
          - initial wizard state
        """
        previous = self._latest_visit(participant.id) if prefill else None
        state = self.wizard.start(participant, step=step, previous=previous)

        session_id = str(uuid.uuid4())
        with self._lock:
            self._sessions[session_id] = state
        return session_id, state

    def get(self, session_id: str) -> Optional[WizardState]:
        with self._lock:
            return self._sessions.get(session_id)

    def edit(self, session_id: str, values: Mapping[str, Any]) -> Optional[WizardState]:
        return self._transition(session_id, lambda s: self.wizard.edit_many(s, values))

    def set_tags(self, session_id: str, field: str, tags: Iterable[str]) -> Optional[WizardState]:
        return self._transition(session_id, lambda s: self.wizard.set_tags(s, field, tags))

    def toggle_tag(self, session_id: str, field: str, tag: str) -> Optional[WizardState]:
        return self._transition(session_id, lambda s: self.wizard.toggle_tag(s, field, tag))

    def next(self, session_id: str) -> Optional[WizardState]:
        return self._transition(session_id, self.wizard.next)

    def prev(self, session_id: str) -> Optional[WizardState]:
        return self._transition(session_id, self.wizard.prev)

    def reset(self, session_id: str, step: Optional[WizardStep] = None) -> Optional[WizardState]:
        return self._transition(session_id, lambda s: self.wizard.reset_step(s, step))

    def cancel(self, session_id: str) -> Optional[WizardState]:
        """Cancel and forget the session; the draft is gone afterwards."""
        return self._transition(session_id, self.wizard.cancel)

    def submit(self, session_id: str) -> Optional[WizardState]:
        """
        Submit the session's draft.

        The saving state is stored before the collaborator is called, so a
        second submit for the same session is answered with a busy error
        instead of a duplicate record.
        """
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                return None
            saving = self.wizard.begin_submit(state)
            self._sessions[session_id] = saving

        if saving.errors or not saving.is_saving:
            return saving

        final = self.wizard.finish_submit(saving)
        with self._lock:
            self._keep(session_id, final)
        return final

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _transition(
        self,
        session_id: str,
        transition: Callable[[WizardState], WizardState],
    ) -> Optional[WizardState]:
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                return None
            new = transition(state)
            self._keep(session_id, new)
            return new

    def _keep(self, session_id: str, state: WizardState) -> None:
        """Keep open sessions; cancelled and submitted ones are forgotten. Caller holds the lock."""
        if state.status in _FINISHED:
            self._sessions.pop(session_id, None)
        else:
            self._sessions[session_id] = state

    def _latest_visit(self, peserta_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.sink.latest_for(peserta_id)
        except TransportFailure as exc:
            logger.warning("Starting without prefill for peserta %s: %s", peserta_id, exc.message)
            return None
