# posyandu/exceptions.py
"""
Error taxonomy for the examination wizard.

Every error carries:
  - type:        category used by clients (validation_error / rejected / transport / ...)
  - code:        specific machine-readable code
  - message:     user-facing text (Indonesian, like the rest of the UI labels)
  - detail:      optional structured payload (field errors, known categories, ...)
  - http_status: status used when the API layer has to surface the error directly

The wizard controller catches these and turns them into state; they only
reach the HTTP exception handler when raised outside a wizard transition.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class WizardError(Exception):
    """Base class of all wizard errors."""

    type = "error"
    code = "UNKNOWN_ERROR"
    http_status = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        detail: Any = None,
        http_status: Optional[int] = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "type": self.type,
            "code": self.code,
            "message": self.message,
        }
        if self.detail is not None:
            body["detail"] = self.detail
        return body


class ValidationError(WizardError):
    """A field of the current step is missing or malformed. Never sent to a backend."""

    type = "validation_error"
    code = "VALIDATION_ERROR"
    http_status = 400

    @property
    def field_errors(self) -> List[Dict[str, str]]:
        if isinstance(self.detail, dict):
            return list(self.detail.get("errors", []))
        return []


class ReadOnlyFieldError(ValidationError):
    """Derived fields are recomputed, never edited."""

    code = "READ_ONLY_FIELD"


class SubmissionRejected(WizardError):
    """The persistence collaborator refused the payload with field errors."""

    type = "rejected"
    code = "SUBMISSION_REJECTED"
    http_status = 422

    @property
    def field_errors(self) -> List[Dict[str, str]]:
        if isinstance(self.detail, dict):
            return list(self.detail.get("errors", []))
        return []


class TransportFailure(WizardError):
    """The persistence collaborator could not be reached or failed unexpectedly."""

    type = "transport"
    code = "TRANSPORT_FAILURE"
    http_status = 503


class SubmissionBusy(WizardError):
    """A submission for this session is already in flight."""

    type = "busy"
    code = "SUBMISSION_IN_PROGRESS"
    http_status = 409


class UnknownCategory(WizardError):
    """The participant was resolved with a category the registry does not know."""

    type = "unknown_category"
    code = "UNKNOWN_CATEGORY"
    http_status = 400


class SessionClosed(WizardError):
    """The session was already submitted, cancelled or aborted."""

    type = "closed"
    code = "SESSION_CLOSED"
    http_status = 409
