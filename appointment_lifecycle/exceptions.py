"""
Errors raised or returned by the appointment lifecycle engine.

Validation errors (InvalidTransitionError, ReasonRequiredError) are produced
before any call to the status store. PersistenceError wraps whatever the store
raised or reported.
"""


class TransitionError(Exception):
    """Base class for failed status transitions."""

    code = 'transition_error'

    def __init__(self, message=''):
        super().__init__(message)
        self.message = message


class InvalidTransitionError(TransitionError):
    """The target status is not reachable from the current status for the role."""

    code = 'invalid_transition'

    def __init__(self, from_status, attempted, legal, role=None):
        self.from_status = from_status
        self.attempted = attempted
        self.legal = tuple(legal)
        self.role = role
        legal_display = ', '.join(str(s) for s in self.legal) or 'none'
        super().__init__(
            f"Cannot move appointment from '{from_status}' to '{attempted}' "
            f"as {role or 'unknown role'} (legal targets: {legal_display})"
        )


class ReasonRequiredError(TransitionError):
    """The transition must be committed with a non-empty reason."""

    code = 'reason_required'

    def __init__(self, transition):
        self.transition = transition
        super().__init__(
            f"A reason is required to move appointment from "
            f"'{transition.from_status}' to '{transition.to_status}'"
        )


class PersistenceError(TransitionError):
    """The status store failed to commit the transition."""

    code = 'persistence_error'

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.cause = cause
        if isinstance(cause, BaseException):
            self.__cause__ = cause


class UnknownStatusWarning(UserWarning):
    """A raw status string did not match any known alias."""
