"""
Settings access for the appointment lifecycle module.

Defaults come from ``module.SETTINGS`` and are overridden key by key by the
``APPOINTMENT_LIFECYCLE`` dict in Django settings, e.g.::

    APPOINTMENT_LIFECYCLE = {
        "ALIASES": {"reprogramada": "pending"},
        "ALIAS_TABLE_VERSION": "2025-02",
    }
"""
import logging

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

from .module import SETTINGS

logger = logging.getLogger(__name__)

SETTINGS_NAME = 'APPOINTMENT_LIFECYCLE'

_reload_callbacks = []


def get_settings() -> dict:
    """Merged module settings. Usable without a configured Django project."""
    merged = dict(SETTINGS)
    if settings.configured:
        overrides = getattr(settings, SETTINGS_NAME, None) or {}
        unknown = set(overrides) - set(SETTINGS)
        if unknown:
            logger.warning("Ignoring unknown %s keys: %s", SETTINGS_NAME, sorted(unknown))
        merged.update({k: v for k, v in overrides.items() if k in SETTINGS})
    return merged


def get_setting(name):
    return get_settings()[name]


def on_reload(callback):
    """Register a callable run when APPOINTMENT_LIFECYCLE changes (tests, override_settings)."""
    _reload_callbacks.append(callback)
    return callback


@receiver(setting_changed)
def _settings_changed(setting, **kwargs):
    if setting != SETTINGS_NAME:
        return
    for callback in _reload_callbacks:
        callback()
