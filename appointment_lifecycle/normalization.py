"""
Boundary adapter for appointment records coming from the data store.

Related records (doctor, patient, service, location) may arrive as an object,
a one-element list or not at all. normalize_appointment() resolves them so
the engine only ever sees AppointmentSummary instances.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Mapping, Optional

from django.utils.dateparse import parse_date, parse_time

from .classifier import classify
from .statuses import CanonicalStatus

logger = logging.getLogger(__name__)

DOCTOR_UNASSIGNED = 'Dr. [No asignado]'
DOCTOR_PROFILE_MISSING = 'Dr. [Perfil no encontrado]'


@dataclass(frozen=True)
class AppointmentSummary:
    id: str
    status: CanonicalStatus
    raw_status: Optional[str]
    scheduled_at: Optional[datetime]
    duration_minutes: int = 0
    doctor_name: str = DOCTOR_UNASSIGNED
    patient_name: str = ''
    service_name: str = ''
    location_name: str = ''


def unwrap(value) -> Optional[Mapping]:
    """Resolve an object / one-element list / empty value to a single mapping or None."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if isinstance(value, Mapping) and value:
        return value
    return None


def full_name(profile: Optional[Mapping]) -> str:
    if not profile:
        return ''
    parts = [profile.get('first_name'), profile.get('last_name')]
    return ' '.join(p.strip() for p in parts if p and p.strip())


def doctor_name(doctor) -> str:
    """Display name of a doctor record, whatever shape its profile arrives in."""
    record = unwrap(doctor)
    if record is None:
        return DOCTOR_UNASSIGNED

    profile = unwrap(record.get('profiles'))
    if profile is None and (record.get('first_name') or record.get('last_name')):
        profile = record
    if profile is None:
        logger.warning("No profile found for doctor %s", record.get('id'))
        return DOCTOR_PROFILE_MISSING

    name = full_name(profile)
    return f"Dr. {name}" if name else DOCTOR_PROFILE_MISSING


def combine_date_time(appointment_date, start_time) -> Optional[datetime]:
    """Combine a date and a start time. Strings are parsed; bad input yields None."""
    if isinstance(appointment_date, datetime):
        return appointment_date
    try:
        if isinstance(appointment_date, str):
            appointment_date = parse_date(appointment_date)
        if isinstance(start_time, str):
            start_time = parse_time(start_time)
    except ValueError:
        return None
    if not isinstance(appointment_date, date):
        return None
    if not isinstance(start_time, time):
        start_time = time(0, 0)
    return datetime.combine(appointment_date, start_time)


def to_minutes(value) -> int:
    """Duration in whole minutes; missing or non-numeric values yield 0."""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        logger.warning("Invalid appointment duration %r, using 0", value)
        return 0


def normalize_appointment(record: Mapping[str, Any]) -> AppointmentSummary:
    """Build an AppointmentSummary from a raw appointment record."""
    raw_status = record.get('status')
    service = unwrap(record.get('service'))
    location = unwrap(record.get('location'))

    return AppointmentSummary(
        id=str(record.get('id', '')),
        status=classify(raw_status),
        raw_status=raw_status,
        scheduled_at=combine_date_time(record.get('appointment_date'), record.get('start_time')),
        duration_minutes=to_minutes(record.get('duration_minutes')),
        doctor_name=doctor_name(record.get('doctor')),
        patient_name=full_name(unwrap(record.get('patient'))),
        service_name=(service or {}).get('name') or '',
        location_name=(location or {}).get('name') or '',
    )
