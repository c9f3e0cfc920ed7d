"""
Appointment Lifecycle Module Configuration

This file defines the module metadata, default settings and the role
permission matrix for the appointment status lifecycle engine.
Settings are overridden per project through ``settings.APPOINTMENT_LIFECYCLE``.
"""
from django.utils.translation import gettext_lazy as _

# Module Identification
MODULE_ID = "appointment_lifecycle"
MODULE_NAME = _("Appointment Lifecycle")
MODULE_VERSION = "1.0.0"

# Default Settings
SETTINGS = {
    "ALIASES": {},
    "ALIAS_TABLE_VERSION": "1",
    "TRANSITIONS": None,  # None = built-in rule table
    "WARN_ON_UNKNOWN_STATUS": True,
}

# Permissions - tuple format (action_suffix, display_name)
PERMISSIONS = [
    ("view_appointment", _("Can view appointments")),
    ("confirm_appointment", _("Can confirm appointments")),
    ("start_appointment", _("Can start appointments")),
    ("complete_appointment", _("Can complete appointments")),
    ("cancel_appointment", _("Can cancel appointments")),
    ("mark_no_show", _("Can mark appointments as no-show")),
    ("view_audit_trail", _("Can view status audit trail")),
]

# Role-based permission assignments
ROLE_PERMISSIONS = {
    "superadmin": ["*"],  # All permissions
    "admin": ["*"],
    "staff": ["*"],
    "doctor": [
        "view_appointment",
        "confirm_appointment",
        "start_appointment",
        "complete_appointment",
        "mark_no_show",
        "view_audit_trail",
    ],
    "patient": [
        "view_appointment",
        "cancel_appointment",
    ],
}

# List tabs exposed per role, in display order
ROLE_TABS = {
    "patient": ["vigentes", "historial"],
    "doctor": ["hoy", "semana", "historial"],
    "staff": ["pendientes", "confirmadas", "completadas", "todas"],
    "admin": ["pendientes", "confirmadas", "completadas", "todas"],
    "superadmin": ["pendientes", "confirmadas", "completadas", "todas"],
}
