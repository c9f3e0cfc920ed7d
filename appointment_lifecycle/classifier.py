"""
Status Classifier

Maps raw persisted status strings, including legacy and localized values,
onto CanonicalStatus. Classification never raises: anything unrecognized
becomes UNKNOWN and is reported as alias drift.
"""
import logging
import warnings
from functools import lru_cache
from typing import Dict, List, Optional

from django.core.exceptions import ImproperlyConfigured

from . import conf
from .exceptions import UnknownStatusWarning
from .statuses import CanonicalStatus, coerce_status

logger = logging.getLogger(__name__)


DEFAULT_ALIASES = {
    # Canonical values
    'pending': CanonicalStatus.PENDING,
    'confirmed': CanonicalStatus.CONFIRMED,
    'in_progress': CanonicalStatus.IN_PROGRESS,
    'completed': CanonicalStatus.COMPLETED,
    'cancelled_by_patient': CanonicalStatus.CANCELLED_BY_PATIENT,
    'cancelled_by_org': CanonicalStatus.CANCELLED_BY_ORG,
    'no_show': CanonicalStatus.NO_SHOW,
    'unknown': CanonicalStatus.UNKNOWN,

    # Legacy values
    'scheduled': CanonicalStatus.CONFIRMED,
    'pendiente_pago': CanonicalStatus.PENDING,
    'reagendada': CanonicalStatus.PENDING,
    'rescheduled': CanonicalStatus.PENDING,
    'en_curso': CanonicalStatus.IN_PROGRESS,
    'in-progress': CanonicalStatus.IN_PROGRESS,
    'cancelada_paciente': CanonicalStatus.CANCELLED_BY_PATIENT,
    'cancelada_clinica': CanonicalStatus.CANCELLED_BY_ORG,
    'cancelled': CanonicalStatus.CANCELLED_BY_ORG,
    'canceled': CanonicalStatus.CANCELLED_BY_ORG,
    'no-show': CanonicalStatus.NO_SHOW,
    'noshow': CanonicalStatus.NO_SHOW,

    # Spanish labels stored by older booking flows
    'pendiente': CanonicalStatus.PENDING,
    'confirmada': CanonicalStatus.CONFIRMED,
    'completada': CanonicalStatus.COMPLETED,
}


class AliasTable:
    """Versioned, case-insensitive raw status -> CanonicalStatus mapping."""

    def __init__(self, aliases: Dict[str, object], version: str = '1'):
        self.version = str(version)
        self._aliases = {}
        for raw, target in aliases.items():
            self._add(raw, target)

    def _add(self, raw, target):
        if not isinstance(raw, str) or not raw:
            raise ImproperlyConfigured(f"Status alias must be a non-empty string, got {raw!r}")
        status = coerce_status(target)
        if status is None:
            raise ImproperlyConfigured(f"Alias '{raw}' maps to unknown status {target!r}")
        key = raw.casefold()
        existing = self._aliases.get(key)
        if existing is not None and existing != status:
            raise ImproperlyConfigured(
                f"Alias '{raw}' maps to both '{existing.value}' and '{status.value}'"
            )
        self._aliases[key] = status

    def __len__(self):
        return len(self._aliases)

    def __contains__(self, raw):
        return self.lookup(raw) is not None

    def lookup(self, raw) -> Optional[CanonicalStatus]:
        """Exact, case-insensitive lookup. None when the alias is not known."""
        if not isinstance(raw, str):
            return None
        return self._aliases.get(raw.casefold())

    def aliases_for(self, status) -> List[str]:
        status = coerce_status(status)
        return sorted(raw for raw, target in self._aliases.items() if target == status)

    def extend(self, aliases: Dict[str, object], version: Optional[str] = None) -> 'AliasTable':
        """Return a new table with extra aliases. Existing aliases cannot be remapped."""
        merged = dict(self._aliases)
        table = AliasTable(merged, version or self.version)
        for raw, target in aliases.items():
            table._add(raw, target)
        return table

    def as_dict(self) -> Dict[str, str]:
        return {raw: status.value for raw, status in self._aliases.items()}


@lru_cache(maxsize=None)
def get_alias_table() -> AliasTable:
    """The alias table in effect: defaults plus configured ALIASES."""
    settings = conf.get_settings()
    return AliasTable(DEFAULT_ALIASES).extend(
        settings['ALIASES'] or {},
        version=settings['ALIAS_TABLE_VERSION'],
    )


@lru_cache(maxsize=None)
def _builtin_table() -> AliasTable:
    return AliasTable(DEFAULT_ALIASES)


conf.on_reload(get_alias_table.cache_clear)


def classify(raw) -> CanonicalStatus:
    """Classify a raw persisted status. Never raises."""
    try:
        status = get_alias_table().lookup(raw)
    except ImproperlyConfigured:
        logger.exception("Status alias table is misconfigured, using built-in aliases")
        status = _builtin_table().lookup(raw)
    if status is not None:
        return status

    logger.warning("Unrecognized appointment status %r, classifying as unknown", raw)
    try:
        warn = conf.get_setting('WARN_ON_UNKNOWN_STATUS')
    except ImproperlyConfigured:
        warn = True
    if warn:
        warnings.warn(
            f"Unrecognized appointment status {raw!r}",
            UnknownStatusWarning,
            stacklevel=2,
        )
    return CanonicalStatus.UNKNOWN
