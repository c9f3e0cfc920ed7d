"""
Pytest configuration and fixtures for appointment lifecycle tests.
"""
import pytest
from datetime import datetime, time, timedelta
from django.utils import timezone


class RecordingStore:
    """In-memory StatusStore that records every call."""

    def __init__(self, response=None, error=None):
        self.calls = []
        self.response = response
        self.error = error

    async def update_status(self, appointment_id, to_status, reason=None, **context):
        self.calls.append({
            'appointment_id': appointment_id,
            'to_status': to_status,
            'reason': reason,
            **context,
        })
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        return {'success': True, 'data': {'status': to_status}}


@pytest.fixture
def store():
    """Status store that accepts every change."""
    return RecordingStore()


@pytest.fixture
def make_store():
    """Factory for stores with a canned response or error."""
    return RecordingStore


@pytest.fixture
def today_9am():
    """Reference 'now': a Wednesday at 09:00."""
    return datetime(2025, 3, 12, 9, 0)


@pytest.fixture
def tomorrow_9am(today_9am):
    return today_9am + timedelta(days=1)


@pytest.fixture
def yesterday_9am(today_9am):
    return today_9am - timedelta(days=1)


@pytest.fixture
def appointment_data():
    """Sample appointment data."""
    start = timezone.localtime() + timedelta(days=7)
    return {
        'patient_id': 'p-100',
        'patient_name': 'Maria Lopez',
        'doctor_id': 'd-200',
        'doctor_name': 'Carlos Ruiz',
        'service_name': 'General consultation',
        'appointment_date': start.date(),
        'start_time': time(10, 30),
        'duration_minutes': 30,
    }


@pytest.fixture
def appointment(db, appointment_data):
    """Create a pending appointment."""
    from appointment_lifecycle.models import Appointment
    return Appointment.objects.create(status='pending', **appointment_data)


@pytest.fixture
def confirmed_appointment(appointment):
    """Create a confirmed appointment."""
    appointment.status = 'confirmed'
    appointment.save()
    return appointment


@pytest.fixture
def legacy_appointment(db, appointment_data):
    """Appointment stored with a legacy status spelling."""
    from appointment_lifecycle.models import Appointment
    return Appointment.objects.create(status='Scheduled', **appointment_data)
