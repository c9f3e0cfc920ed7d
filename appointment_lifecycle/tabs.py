"""
Tab Categorizer

Pure bucket predicates used by the role-specific appointment lists. Callers
pass ``now``; nothing here reads the system clock. When both values are
aware, ``now`` is read in the appointment's timezone before comparing days.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .classifier import classify
from .module import ROLE_TABS
from .statuses import ActorRole, CanonicalStatus, coerce_role


class BucketId(models.TextChoices):
    VIGENTES = 'vigentes', _('Upcoming')
    HISTORIAL = 'historial', _('History')
    HOY = 'hoy', _('Today')
    SEMANA = 'semana', _('This Week')
    PENDIENTES = 'pendientes', _('Pending')
    CONFIRMADAS = 'confirmadas', _('Confirmed')
    COMPLETADAS = 'completadas', _('Completed')
    TODAS = 'todas', _('All')


ACTIVE_STATUSES = frozenset([CanonicalStatus.PENDING, CanonicalStatus.CONFIRMED])

HISTORY_STATUSES = frozenset([
    CanonicalStatus.COMPLETED,
    CanonicalStatus.CANCELLED_BY_PATIENT,
    CanonicalStatus.CANCELLED_BY_ORG,
    CanonicalStatus.NO_SHOW,
])

STATUS_BUCKETS = {
    CanonicalStatus.PENDING: BucketId.PENDIENTES,
    CanonicalStatus.CONFIRMED: BucketId.CONFIRMADAS,
    CanonicalStatus.COMPLETED: BucketId.COMPLETADAS,
}


@dataclass(frozen=True)
class TabConfig:
    bucket: BucketId
    label: str
    description: str
    empty_message: str


TAB_CONFIGS = {
    BucketId.VIGENTES: TabConfig(
        BucketId.VIGENTES, _('Upcoming'),
        _('Confirmed and pending appointments'),
        _('You have no upcoming appointments'),
    ),
    BucketId.HISTORIAL: TabConfig(
        BucketId.HISTORIAL, _('History'),
        _('Completed and cancelled appointments'),
        _('No appointment history'),
    ),
    BucketId.HOY: TabConfig(
        BucketId.HOY, _('Today'),
        _('Appointments scheduled for today'),
        _('No appointments today'),
    ),
    BucketId.SEMANA: TabConfig(
        BucketId.SEMANA, _('This Week'),
        _('Appointments this week'),
        _('No appointments this week'),
    ),
    BucketId.PENDIENTES: TabConfig(
        BucketId.PENDIENTES, _('Pending'),
        _('Appointments awaiting confirmation'),
        _('No pending appointments'),
    ),
    BucketId.CONFIRMADAS: TabConfig(
        BucketId.CONFIRMADAS, _('Confirmed'),
        _('Confirmed and scheduled appointments'),
        _('No confirmed appointments'),
    ),
    BucketId.COMPLETADAS: TabConfig(
        BucketId.COMPLETADAS, _('Completed'),
        _('Finished appointments'),
        _('No completed appointments'),
    ),
    BucketId.TODAS: TabConfig(
        BucketId.TODAS, _('All'),
        _('Every appointment'),
        _('No appointments registered'),
    ),
}


def get_tab_config(bucket) -> TabConfig:
    return TAB_CONFIGS[BucketId(bucket)]


def tabs_for_role(role) -> List[BucketId]:
    """Tabs shown to a role, in display order. Unknown roles get the patient view."""
    actor = coerce_role(role) or ActorRole.PATIENT
    return [BucketId(tab) for tab in ROLE_TABS[actor.value]]


def week_bounds(now: datetime):
    """First and last calendar day of the Sunday-Saturday week containing ``now``."""
    today = now.date()
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def categorize(status, scheduled_at: Optional[datetime], role, now: datetime) -> Set[BucketId]:
    """
    All buckets an appointment belongs to.

    The role is validated but does not change how predicates evaluate; use
    visible_buckets() to restrict the result to the role's tabs. Raw status
    strings, legacy aliases included, go through classify(). Without a
    scheduled_at only the status-driven buckets apply.

    Raises:
        ValueError: if the role is not an ActorRole.
    """
    if coerce_role(role) is None:
        raise ValueError(f"Unknown actor role: {role!r}")
    if not isinstance(status, CanonicalStatus):
        status = classify(status)

    buckets = {BucketId.TODAS}

    if status in STATUS_BUCKETS:
        buckets.add(STATUS_BUCKETS[status])
    # Status membership wins over a future date
    if status in HISTORY_STATUSES:
        buckets.add(BucketId.HISTORIAL)

    if scheduled_at is None:
        return buckets
    if timezone.is_aware(scheduled_at) and timezone.is_aware(now):
        # Calendar days are those of the appointment's timezone
        now = now.astimezone(scheduled_at.tzinfo)

    if scheduled_at > now and status in ACTIVE_STATUSES:
        buckets.add(BucketId.VIGENTES)
    if scheduled_at <= now:
        buckets.add(BucketId.HISTORIAL)

    appointment_day = scheduled_at.date()
    if appointment_day == now.date():
        buckets.add(BucketId.HOY)
    week_start, week_end = week_bounds(now)
    if week_start <= appointment_day <= week_end:
        buckets.add(BucketId.SEMANA)

    return buckets


def visible_buckets(status, scheduled_at: datetime, role, now: datetime) -> List[BucketId]:
    """Buckets the appointment appears in, limited to the role's tabs."""
    buckets = categorize(status, scheduled_at, role, now)
    return [tab for tab in tabs_for_role(role) if tab in buckets]


def filter_by_tab(appointments: Iterable, bucket, role, now: datetime) -> List:
    """Appointments (anything with ``status`` and ``scheduled_at``) in a bucket."""
    bucket = BucketId(bucket)
    return [
        appointment for appointment in appointments
        if bucket in categorize(appointment.status, appointment.scheduled_at, role, now)
    ]


def count_by_tab(appointments: Iterable, role, now: datetime) -> Dict[str, int]:
    """Counters for each tab of the role, plus ``total``."""
    appointments = list(appointments)
    role = coerce_role(role) or ActorRole.PATIENT
    tabs = tabs_for_role(role)
    counts = {tab.value: 0 for tab in tabs}
    for appointment in appointments:
        buckets = categorize(appointment.status, appointment.scheduled_at, role, now)
        for tab in tabs:
            if tab in buckets:
                counts[tab.value] += 1
    counts['total'] = len(appointments)
    return counts
