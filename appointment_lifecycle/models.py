from django.conf import settings
from django.db import models
from django.utils import timezone
import uuid
from datetime import datetime, timedelta

from .classifier import classify
from .normalization import DOCTOR_UNASSIGNED, AppointmentSummary
from .statuses import ActorRole, CanonicalStatus, is_terminal


class Appointment(models.Model):
    """An appointment as persisted. ``status`` may hold legacy raw values."""

    appointment_number = models.CharField(max_length=20, unique=True, blank=True)

    # Participants (references to profiles owned by other modules)
    patient_id = models.CharField(max_length=64, blank=True)
    patient_name = models.CharField(max_length=200, blank=True)
    doctor_id = models.CharField(max_length=64, blank=True)
    doctor_name = models.CharField(max_length=200, blank=True)
    service_name = models.CharField(max_length=200, blank=True)

    # Timing
    appointment_date = models.DateField()
    start_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField(default=30)

    # Status (raw, not restricted to canonical choices)
    status = models.CharField(max_length=32, default=CanonicalStatus.PENDING, db_index=True)

    # Cancellation
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['appointment_date', 'start_time']
        indexes = [
            models.Index(fields=['appointment_date', 'status']),
            models.Index(fields=['doctor_id', 'appointment_date']),
        ]

    def __str__(self):
        return f"{self.appointment_number} - {self.patient_name} ({self.appointment_date} {self.start_time.strftime('%H:%M')})"

    def save(self, *args, **kwargs):
        if not self.appointment_number:
            self.appointment_number = self.generate_appointment_number()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_appointment_number():
        """Generate unique appointment number."""
        today = timezone.now()
        prefix = today.strftime('%Y%m%d')
        random_suffix = uuid.uuid4().hex[:6].upper()
        return f"APT-{prefix}-{random_suffix}"

    @property
    def canonical_status(self):
        return classify(self.status)

    @property
    def is_terminal(self):
        return is_terminal(self.canonical_status)

    @property
    def scheduled_at(self):
        """Start as a datetime, aware in the current timezone when USE_TZ is on."""
        value = datetime.combine(self.appointment_date, self.start_time)
        if settings.USE_TZ:
            value = timezone.make_aware(value)
        return value

    @property
    def end_datetime(self):
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)

    def to_summary(self):
        return AppointmentSummary(
            id=str(self.pk),
            status=self.canonical_status,
            raw_status=self.status,
            scheduled_at=self.scheduled_at,
            duration_minutes=self.duration_minutes,
            doctor_name=f"Dr. {self.doctor_name}" if self.doctor_name else DOCTOR_UNASSIGNED,
            patient_name=self.patient_name,
            service_name=self.service_name,
        )


class AppointmentStatusHistory(models.Model):
    """Audit trail entry for a committed status change."""

    appointment = models.ForeignKey(
        Appointment,
        on_delete=models.CASCADE,
        related_name='status_history'
    )
    previous_status = models.CharField(max_length=32, blank=True)
    new_status = models.CharField(max_length=32)
    reason = models.TextField(blank=True)
    actor_role = models.CharField(max_length=20, choices=ActorRole.choices, blank=True)
    changed_by_id = models.CharField(max_length=64, blank=True)
    requested_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'Appointment status histories'

    def __str__(self):
        return f"{self.appointment.appointment_number}: {self.previous_status} -> {self.new_status}"

    @classmethod
    def log(cls, appointment, previous_status, new_status, reason='', actor_role='',
            changed_by_id='', requested_at=None, metadata=None):
        """Create a history entry."""
        return cls.objects.create(
            appointment=appointment,
            previous_status=previous_status or '',
            new_status=new_status,
            reason=reason or '',
            actor_role=actor_role or '',
            changed_by_id=changed_by_id or '',
            requested_at=requested_at,
            metadata=metadata or {},
        )
