from django.contrib import admin
from .models import (
    Appointment,
    AppointmentStatusHistory,
)
from .statuses import get_config


class AppointmentStatusHistoryInline(admin.TabularInline):
    model = AppointmentStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ['previous_status', 'new_status', 'reason', 'actor_role', 'changed_by_id', 'created_at']


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['appointment_number', 'patient_name', 'doctor_name', 'appointment_date', 'start_time', 'status', 'status_label']
    list_filter = ['status', 'appointment_date']
    search_fields = ['appointment_number', 'patient_name', 'doctor_name']
    readonly_fields = ['status', 'cancelled_at', 'cancellation_reason']
    inlines = [AppointmentStatusHistoryInline]

    @admin.display(description='Canonical status')
    def status_label(self, obj):
        return get_config(obj.canonical_status).label


@admin.register(AppointmentStatusHistory)
class AppointmentStatusHistoryAdmin(admin.ModelAdmin):
    list_display = ['appointment', 'previous_status', 'new_status', 'actor_role', 'created_at']
    list_filter = ['new_status', 'actor_role']

    def has_change_permission(self, request, obj=None):
        return False
