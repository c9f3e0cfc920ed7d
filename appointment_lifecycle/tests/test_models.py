"""
Unit tests for appointment lifecycle models, permissions and admin.
"""
import re
import warnings
import pytest
from datetime import datetime, timedelta, time, timezone as dt_timezone
from django.contrib import admin
from django.utils import timezone

from appointment_lifecycle.admin import AppointmentAdmin, AppointmentStatusHistoryAdmin
from appointment_lifecycle.clock import Clock, FixedClock, SystemClock
from appointment_lifecycle.exceptions import UnknownStatusWarning
from appointment_lifecycle.models import Appointment, AppointmentStatusHistory
from appointment_lifecycle.module import PERMISSIONS
from appointment_lifecycle.permissions import get_role_permissions, role_has_permission
from appointment_lifecycle.statuses import ActorRole, CanonicalStatus, get_config
from appointment_lifecycle.tabs import BucketId, categorize, count_by_tab, filter_by_tab


# =============================================================================
# Appointment Tests
# =============================================================================

@pytest.mark.django_db
class TestAppointment:
    """Test cases for Appointment model."""

    def test_appointment_number_generated(self, appointment):
        """Appointment number is assigned on first save."""
        assert re.match(r'^APT-\d{8}-[0-9A-F]{6}$', appointment.appointment_number)

    def test_appointment_number_kept(self, appointment):
        number = appointment.appointment_number
        appointment.patient_name = 'Maria L.'
        appointment.save()
        assert appointment.appointment_number == number

    def test_str_representation(self, appointment):
        assert str(appointment) == (
            f"{appointment.appointment_number} - Maria Lopez "
            f"({appointment.appointment_date} 10:30)"
        )

    def test_canonical_status(self, appointment, legacy_appointment):
        assert appointment.canonical_status == CanonicalStatus.PENDING
        assert legacy_appointment.canonical_status == CanonicalStatus.CONFIRMED
        assert appointment.is_terminal is False

    def test_unrecognized_status_is_terminal(self, appointment):
        appointment.status = 'archived'
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', UnknownStatusWarning)
            assert appointment.canonical_status == CanonicalStatus.UNKNOWN
            assert appointment.is_terminal is True

    def test_scheduled_at_is_aware(self, appointment):
        scheduled = appointment.scheduled_at
        assert timezone.is_aware(scheduled)
        assert timezone.localtime(scheduled).time() == time(10, 30)
        assert appointment.end_datetime - scheduled == timedelta(minutes=30)

    def test_to_summary(self, legacy_appointment):
        summary = legacy_appointment.to_summary()
        assert summary.id == str(legacy_appointment.pk)
        assert summary.status == CanonicalStatus.CONFIRMED
        assert summary.raw_status == 'Scheduled'
        assert summary.doctor_name == 'Dr. Carlos Ruiz'
        assert summary.duration_minutes == 30

    def test_summary_is_upcoming(self, appointment):
        """A pending appointment next week shows under the patient's upcoming tab."""
        summary = appointment.to_summary()
        buckets = categorize(summary.status, summary.scheduled_at, ActorRole.PATIENT, SystemClock().now())
        assert BucketId.VIGENTES in buckets
        assert BucketId.PENDIENTES in buckets

    def test_default_status(self, appointment_data):
        appointment = Appointment.objects.create(**appointment_data)
        assert appointment.status == 'pending'


# =============================================================================
# Appointment Tabs Tests
# =============================================================================

@pytest.mark.django_db
class TestAppointmentTabs:
    """Model instances fed straight into the tab helpers."""

    def test_legacy_status_is_upcoming(self, legacy_appointment):
        """A future 'Scheduled' row counts as confirmed and upcoming."""
        now = SystemClock().now()
        assert filter_by_tab([legacy_appointment], BucketId.VIGENTES, ActorRole.PATIENT, now) == [legacy_appointment]
        assert filter_by_tab([legacy_appointment], BucketId.CONFIRMADAS, ActorRole.STAFF, now) == [legacy_appointment]

    def test_legacy_statuses_counted(self, appointment_data):
        rows = [
            Appointment.objects.create(status=status, **appointment_data)
            for status in ('Scheduled', 'confirmada', 'en_curso', 'pendiente_pago')
        ]
        with warnings.catch_warnings():
            warnings.simplefilter('error', UnknownStatusWarning)
            counts = count_by_tab(rows, ActorRole.STAFF, SystemClock().now())
        assert counts == {'pendientes': 1, 'confirmadas': 2, 'completadas': 0, 'todas': 4, 'total': 4}

    def test_unrecognized_status_warns(self, appointment):
        appointment.status = 'archived'
        with pytest.warns(UnknownStatusWarning):
            buckets = categorize(appointment.status, appointment.scheduled_at, ActorRole.STAFF, SystemClock().now())
        assert BucketId.VIGENTES not in buckets

    def test_evening_before_midnight_utc(self, monkeypatch):
        """20:00 in Bogota is already the next day in UTC; today is still today."""
        monkeypatch.setattr(timezone, 'now', lambda: datetime(2025, 3, 13, 1, 0, tzinfo=dt_timezone.utc))
        appointment = Appointment(
            status='confirmed',
            appointment_date=datetime(2025, 3, 12).date(),
            start_time=time(21, 0),
        )
        now = SystemClock().now()
        assert now.date() == datetime(2025, 3, 12).date()

        buckets = categorize(appointment.canonical_status, appointment.scheduled_at, ActorRole.DOCTOR, now)
        assert BucketId.HOY in buckets
        assert BucketId.VIGENTES in buckets

    def test_utc_now_read_in_appointment_timezone(self):
        """An aware UTC ``now`` is compared on the appointment's calendar."""
        appointment = Appointment(
            status='confirmed',
            appointment_date=datetime(2025, 3, 15).date(),
            start_time=time(21, 0),
        )
        utc_now = datetime(2025, 3, 16, 1, 0, tzinfo=dt_timezone.utc)

        buckets = categorize(appointment.canonical_status, appointment.scheduled_at, ActorRole.DOCTOR, utc_now)
        assert BucketId.HOY in buckets
        assert BucketId.SEMANA in buckets


# =============================================================================
# AppointmentStatusHistory Tests
# =============================================================================

@pytest.mark.django_db
class TestAppointmentStatusHistory:
    """Test cases for AppointmentStatusHistory model."""

    def test_log(self, appointment):
        entry = AppointmentStatusHistory.log(
            appointment,
            'pending',
            'confirmed',
            actor_role=ActorRole.STAFF,
            changed_by_id='u-1',
        )
        assert entry.previous_status == 'pending'
        assert entry.new_status == 'confirmed'
        assert entry.reason == ''
        assert entry.actor_role == 'staff'
        assert entry.metadata == {}
        assert str(entry) == f"{appointment.appointment_number}: pending -> confirmed"

    def test_newest_first(self, appointment):
        first = AppointmentStatusHistory.log(appointment, 'pending', 'confirmed')
        second = AppointmentStatusHistory.log(appointment, 'confirmed', 'in_progress')
        assert list(appointment.status_history.all()) == [second, first]

    def test_cascade_delete(self, appointment):
        AppointmentStatusHistory.log(appointment, 'pending', 'confirmed')
        appointment.delete()
        assert AppointmentStatusHistory.objects.count() == 0


# =============================================================================
# Permissions Tests
# =============================================================================

class TestPermissions:
    """Test cases for the role permission matrix."""

    @pytest.mark.parametrize('role', ['superadmin', 'admin', 'staff'])
    def test_wildcard_roles(self, role):
        """``*`` expands to every declared permission."""
        assert get_role_permissions(role) == [code for code, _label in PERMISSIONS]
        assert role_has_permission(role, 'view_audit_trail')
        assert not role_has_permission(role, 'delete_everything')

    def test_doctor(self):
        assert role_has_permission(ActorRole.DOCTOR, 'view_audit_trail')
        assert not role_has_permission(ActorRole.DOCTOR, 'cancel_appointment')

    def test_patient(self):
        assert role_has_permission(ActorRole.PATIENT, 'cancel_appointment')
        assert not role_has_permission(ActorRole.PATIENT, 'view_audit_trail')

    def test_unknown_role(self):
        assert get_role_permissions('visitor') == []
        assert not role_has_permission('visitor', 'view_appointment')


# =============================================================================
# Admin Tests
# =============================================================================

@pytest.mark.django_db
class TestAdmin:
    """Test cases for admin registrations."""

    def test_status_label(self, legacy_appointment):
        model_admin = AppointmentAdmin(Appointment, admin.site)
        assert model_admin.status_label(legacy_appointment) == get_config(CanonicalStatus.CONFIRMED).label

    def test_status_is_read_only(self):
        model_admin = AppointmentAdmin(Appointment, admin.site)
        assert 'status' in model_admin.readonly_fields

    def test_history_cannot_be_changed(self, rf):
        model_admin = AppointmentStatusHistoryAdmin(AppointmentStatusHistory, admin.site)
        assert model_admin.has_change_permission(rf.get('/')) is False


# =============================================================================
# Clock Tests
# =============================================================================

class TestClock:

    def test_fixed_clock(self):
        instant = datetime(2025, 3, 12, 9, 0)
        clock = FixedClock(instant)
        assert clock.now() == instant
        assert clock.is_past(instant)
        assert not clock.is_past(instant + timedelta(minutes=1))

    def test_system_clock(self):
        clock = SystemClock()
        assert isinstance(clock, Clock)
        assert timezone.is_aware(clock.now())
        assert clock.is_past(timezone.now() - timedelta(seconds=1))
