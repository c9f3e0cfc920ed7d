"""
Django ORM status store.

Commits status changes for TransitionExecutor and keeps the audit trail.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from asgiref.sync import sync_to_async
from django.apps import apps
from django.core.exceptions import PermissionDenied
from django.db import transaction
from django.utils import timezone

from ..classifier import get_alias_table
from ..models import Appointment, AppointmentStatusHistory
from ..permissions import role_has_permission
from ..statuses import CANCELLED_STATUSES, coerce_status

logger = logging.getLogger(__name__)


class DjangoStatusStore:
    """StatusStore backed by the Appointment model."""

    def __init__(self, app_label: str = 'appointment_lifecycle') -> None:
        self.app_label = app_label

    async def update_status(
        self,
        appointment_id: str,
        to_status: str,
        reason: Optional[str] = None,
        **context: Any,
    ) -> Dict[str, Any]:
        return await sync_to_async(self._update_status)(appointment_id, to_status, reason, **context)

    def _update_status(
        self,
        appointment_id,
        to_status,
        reason=None,
        expected_status=None,
        actor_role='',
        changed_by=None,
        requested_at: Optional[datetime] = None,
        metadata=None,
    ) -> Dict[str, Any]:
        with transaction.atomic():
            try:
                appointment = Appointment.objects.select_for_update().filter(pk=appointment_id).first()
            except (ValueError, TypeError):
                appointment = None
            if appointment is None:
                return {'success': False, 'error': 'Appointment not found'}

            previous_status = appointment.status
            fields = {'status': to_status, 'updated_at': timezone.now()}
            if coerce_status(to_status) in CANCELLED_STATUSES:
                fields['cancelled_at'] = timezone.now()
                fields['cancellation_reason'] = reason or ''

            query = Appointment.objects.filter(pk=appointment.pk)
            if expected_status:
                # Any stored alias of the expected status counts as unchanged
                accepted = get_alias_table().aliases_for(expected_status) or [expected_status]
                query = query.filter(status__in=self._stored_spellings(previous_status, accepted))
            if query.update(**fields) == 0:
                logger.warning(
                    f"Appointment {appointment_id} changed concurrently: "
                    f"stored '{previous_status}', expected '{expected_status}'"
                )
                return {
                    'success': False,
                    'error': f"Appointment status changed concurrently (now '{previous_status}')",
                }

            appointment.refresh_from_db()
            history = AppointmentStatusHistory.log(
                appointment,
                previous_status,
                appointment.status,
                reason=reason,
                actor_role=actor_role,
                changed_by_id=str(changed_by) if changed_by is not None else '',
                requested_at=requested_at,
                metadata=metadata,
            )

        config = apps.get_app_config(self.app_label)
        config.do_after_status_change(appointment, previous_status, appointment.status)

        return {
            'success': True,
            'data': {
                'id': str(appointment.pk),
                'status': appointment.status,
                'previous_status': previous_status,
                'audit_id': history.pk,
            },
        }

    @staticmethod
    def _stored_spellings(stored, aliases):
        """Aliases are case-folded; match the stored value's own spelling too."""
        spellings = set(aliases)
        if stored and stored.casefold() in spellings:
            spellings.add(stored)
        return sorted(spellings)

    def get_audit_trail(self, appointment_id, role, limit: int = 50) -> List[AppointmentStatusHistory]:
        """Status history for an appointment, newest first."""
        if not role_has_permission(role, 'view_audit_trail'):
            raise PermissionDenied(f"Role '{role}' cannot view the audit trail")
        return list(
            AppointmentStatusHistory.objects.filter(appointment_id=appointment_id)[:limit]
        )

