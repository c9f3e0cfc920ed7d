from django.apps import AppConfig

from .module import MODULE_ID, MODULE_NAME


class AppointmentLifecycleConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = MODULE_ID
    verbose_name = MODULE_NAME

    def ready(self):
        # Fail at startup on a misconfigured alias or transition table
        from .classifier import get_alias_table
        from .transitions import get_transition_table

        get_alias_table()
        get_transition_table()

    # =========================================================================
    # HOOK HELPER METHODS
    # =========================================================================
    # These methods are called by the status store after a change is committed.
    # Override them in a subclass to customize behavior.

    @staticmethod
    def do_after_status_change(appointment, old_status: str, new_status: str) -> None:
        """Called after an appointment status changes."""
        pass
