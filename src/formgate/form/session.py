"""One-shot validation session of a form."""

from enum import Enum

from formgate.exceptions import SessionError


class SessionState(Enum):
    UNVALIDATED = "unvalidated"
    VALIDATED = "validated"


class ValidationSession:
    """Guards the validate -> read errors -> reset cycle.

    A form can be validated once; validating again requires a reset
    (``Form.clear_errors()``, which writing a value also does). Errors can only
    be read after validation.
    """

    def __init__(self) -> None:
        self.state = SessionState.UNVALIDATED

    @property
    def validated(self) -> bool:
        return self.state is SessionState.VALIDATED

    def begin(self) -> None:
        if self.validated:
            raise SessionError("Validation was already done - call clear_errors() to reset")

    def complete(self) -> None:
        self.state = SessionState.VALIDATED

    def require_validated(self) -> None:
        if not self.validated:
            raise SessionError("You must run validate() before reading errors")

    def reset(self) -> None:
        self.state = SessionState.UNVALIDATED
