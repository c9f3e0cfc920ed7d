"""
Canonical appointment statuses and their display configuration.
"""
from dataclasses import dataclass
from typing import List

from django.db import models
from django.utils.translation import gettext_lazy as _


class CanonicalStatus(models.TextChoices):
    PENDING = 'pending', _('Pending')
    CONFIRMED = 'confirmed', _('Confirmed')
    IN_PROGRESS = 'in_progress', _('In Progress')
    COMPLETED = 'completed', _('Completed')
    CANCELLED_BY_PATIENT = 'cancelled_by_patient', _('Cancelled by Patient')
    CANCELLED_BY_ORG = 'cancelled_by_org', _('Cancelled by Clinic')
    NO_SHOW = 'no_show', _('No Show')
    UNKNOWN = 'unknown', _('Unknown')


class ActorRole(models.TextChoices):
    PATIENT = 'patient', _('Patient')
    DOCTOR = 'doctor', _('Doctor')
    STAFF = 'staff', _('Staff')
    ADMIN = 'admin', _('Admin')
    SUPERADMIN = 'superadmin', _('Superadmin')


TERMINAL_STATUSES = frozenset([
    CanonicalStatus.COMPLETED,
    CanonicalStatus.CANCELLED_BY_PATIENT,
    CanonicalStatus.CANCELLED_BY_ORG,
    CanonicalStatus.NO_SHOW,
    CanonicalStatus.UNKNOWN,
])

CANCELLED_STATUSES = frozenset([
    CanonicalStatus.CANCELLED_BY_PATIENT,
    CanonicalStatus.CANCELLED_BY_ORG,
])


@dataclass(frozen=True)
class StatusConfig:
    """Display metadata for one canonical status."""

    status: CanonicalStatus
    label: str
    color_token: str
    icon_key: str
    sort_priority: int
    description: str

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


STATUS_CONFIGS = {
    CanonicalStatus.IN_PROGRESS: StatusConfig(
        status=CanonicalStatus.IN_PROGRESS,
        label=_('In Progress'),
        color_token='indigo',
        icon_key='play',
        sort_priority=10,
        description=_('Patient is being attended'),
    ),
    CanonicalStatus.PENDING: StatusConfig(
        status=CanonicalStatus.PENDING,
        label=_('Requested'),
        color_token='yellow',
        icon_key='clock',
        sort_priority=20,
        description=_('Appointment registered, awaiting confirmation'),
    ),
    CanonicalStatus.CONFIRMED: StatusConfig(
        status=CanonicalStatus.CONFIRMED,
        label=_('Confirmed'),
        color_token='green',
        icon_key='check-circle',
        sort_priority=30,
        description=_('Appointment confirmed and scheduled'),
    ),
    CanonicalStatus.COMPLETED: StatusConfig(
        status=CanonicalStatus.COMPLETED,
        label=_('Completed'),
        color_token='gray',
        icon_key='check-circle',
        sort_priority=40,
        description=_('Appointment took place'),
    ),
    CanonicalStatus.NO_SHOW: StatusConfig(
        status=CanonicalStatus.NO_SHOW,
        label=_('No Show'),
        color_token='red',
        icon_key='alert-triangle',
        sort_priority=50,
        description=_('Patient did not attend'),
    ),
    CanonicalStatus.CANCELLED_BY_PATIENT: StatusConfig(
        status=CanonicalStatus.CANCELLED_BY_PATIENT,
        label=_('Cancelled by Patient'),
        color_token='red',
        icon_key='x-circle',
        sort_priority=60,
        description=_('Cancelled by the patient'),
    ),
    CanonicalStatus.CANCELLED_BY_ORG: StatusConfig(
        status=CanonicalStatus.CANCELLED_BY_ORG,
        label=_('Cancelled by Clinic'),
        color_token='red',
        icon_key='x-circle',
        sort_priority=70,
        description=_('Cancelled by the clinic'),
    ),
    CanonicalStatus.UNKNOWN: StatusConfig(
        status=CanonicalStatus.UNKNOWN,
        label=_('Unknown'),
        color_token='gray',
        icon_key='help-circle',
        sort_priority=99,
        description=_('Stored status is not recognized'),
    ),
}


def coerce_status(value):
    """Return the CanonicalStatus for an enum member or raw value, else None."""
    if isinstance(value, CanonicalStatus):
        return value
    try:
        return CanonicalStatus(value)
    except (ValueError, TypeError):
        return None


def coerce_role(value):
    """Return the ActorRole for an enum member or raw value, else None."""
    if isinstance(value, ActorRole):
        return value
    try:
        return ActorRole(value)
    except (ValueError, TypeError):
        return None


def get_config(status) -> StatusConfig:
    """Get the display configuration of a status. Never fails."""
    canonical = coerce_status(status)
    if canonical is None:
        canonical = CanonicalStatus.UNKNOWN
    return STATUS_CONFIGS[canonical]


def all_statuses() -> List[CanonicalStatus]:
    """All canonical statuses, most active first."""
    return sorted(STATUS_CONFIGS, key=lambda s: STATUS_CONFIGS[s].sort_priority)


def is_terminal(status) -> bool:
    """Terminal statuses have no outgoing transitions. Unrecognized input counts as terminal."""
    canonical = coerce_status(status)
    return canonical is None or canonical in TERMINAL_STATUSES
