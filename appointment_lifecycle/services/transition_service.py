"""
Transition Service

Orchestrates a single status change: legality check, reason check, exactly
one call to the status store, then re-classification of whatever status the
store reports back.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from ..classifier import classify
from ..clock import Clock, SystemClock
from ..exceptions import (
    InvalidTransitionError,
    PersistenceError,
    ReasonRequiredError,
    TransitionError,
)
from ..statuses import CanonicalStatus, coerce_role, coerce_status
from ..transitions import available_transitions

logger = logging.getLogger(__name__)


@runtime_checkable
class StatusStore(Protocol):
    """Persistence collaborator that commits status changes.

    Implementations: DjangoStatusStore
    """

    async def update_status(
        self,
        appointment_id: str,
        to_status: str,
        reason: Optional[str] = None,
        **context: Any,
    ) -> Dict[str, Any]:
        """Persist the new raw status.

        Args:
            appointment_id: Appointment identifier.
            to_status: Canonical status as its raw string value.
            reason: Reason captured for the change, if any.
            **context: expected_status, actor_role, changed_by, requested_at, metadata.

        Returns:
            ``{"success": True, "data": {"status": ...}}`` or
            ``{"success": False, "error": "..."}``.
        """
        ...


@dataclass(frozen=True)
class TransitionRequest:
    appointment_id: str
    from_status: CanonicalStatus
    to_status: CanonicalStatus
    actor_role: str
    reason: Optional[str] = None
    requested_at: Optional[datetime] = None
    changed_by: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of execute(): either the new status or the error."""

    status: Optional[CanonicalStatus] = None
    error: Optional[TransitionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> CanonicalStatus:
        if self.error is not None:
            raise self.error
        return self.status

    @classmethod
    def success(cls, status: CanonicalStatus) -> 'TransitionResult':
        return cls(status=status)

    @classmethod
    def failure(cls, error: TransitionError) -> 'TransitionResult':
        return cls(error=error)


class TransitionExecutor:
    """Validates and commits status transitions through a StatusStore.

    Holds no per-appointment state. Callers must keep at most one request in
    flight per appointment.
    """

    def __init__(self, store: StatusStore, clock: Optional[Clock] = None) -> None:
        self._store = store
        self._clock = clock or SystemClock()

    def validate(self, request: TransitionRequest):
        """Return the matching Transition or raise a validation error. No side effects."""
        legal = available_transitions(request.from_status, request.actor_role)
        target = coerce_status(request.to_status)
        transition = next((t for t in legal if t.to_status == target), None)

        if transition is None:
            raise InvalidTransitionError(
                from_status=request.from_status,
                attempted=request.to_status,
                legal=[t.to_status for t in legal],
                role=request.actor_role,
            )

        if transition.requires_reason and not (request.reason or '').strip():
            raise ReasonRequiredError(transition)

        return transition

    async def execute(self, request: TransitionRequest) -> TransitionResult:
        """Execute a transition request.

        Args:
            request: Transition request; ``from_status`` must already be canonical.

        Returns:
            TransitionResult with the status reported by the store, or the error.
        """
        logger.info(
            f"Transition requested for appointment {request.appointment_id}: "
            f"{request.from_status} -> {request.to_status} by {request.actor_role}"
        )

        try:
            transition = self.validate(request)
        except (InvalidTransitionError, ReasonRequiredError) as e:
            logger.warning(f"Transition rejected for appointment {request.appointment_id}: {e}")
            return TransitionResult.failure(e)

        reason = (request.reason or '').strip() or None
        requested_at = request.requested_at or self._clock.now()

        try:
            response = await self._store.update_status(
                request.appointment_id,
                transition.to_status.value,
                reason,
                expected_status=transition.from_status.value,
                actor_role=coerce_role(request.actor_role).value,
                changed_by=request.changed_by,
                requested_at=requested_at,
                metadata=dict(request.metadata),
            )
        except Exception as e:
            logger.exception(f"Status store failed for appointment {request.appointment_id}")
            return TransitionResult.failure(
                PersistenceError(f"Failed to update appointment status: {e}", cause=e)
            )

        return self._handle_response(request, transition, response)

    def _handle_response(self, request, transition, response) -> TransitionResult:
        if not isinstance(response, dict) or not response.get('success'):
            error = response.get('error') if isinstance(response, dict) else None
            logger.error(f"Failed to update appointment {request.appointment_id}: {error or response!r}")
            return TransitionResult.failure(
                PersistenceError(error or 'Failed to update appointment status', cause=response)
            )

        data = response.get('data') or {}
        raw_status = data.get('status') if isinstance(data, dict) else None
        if raw_status is None:
            logger.error(f"Status store response for appointment {request.appointment_id} has no status")
            return TransitionResult.failure(
                PersistenceError('Status store response did not include a status', cause=response)
            )

        new_status = classify(raw_status)
        if new_status != transition.to_status:
            logger.warning(
                f"Appointment {request.appointment_id} stored as '{raw_status}' "
                f"instead of requested '{transition.to_status.value}'"
            )
        else:
            logger.info(
                f"Appointment {request.appointment_id} moved "
                f"{transition.from_status.value} -> {new_status.value}"
            )
        return TransitionResult.success(new_status)
