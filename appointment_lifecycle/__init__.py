"""Appointment status lifecycle engine."""
from .module import MODULE_VERSION as __version__
from .classifier import classify
from .statuses import ActorRole, CanonicalStatus, StatusConfig, all_statuses, get_config
from .tabs import BucketId, categorize
from .transitions import Transition, available_transitions

__all__ = [
    'ActorRole',
    'BucketId',
    'CanonicalStatus',
    'StatusConfig',
    'Transition',
    'all_statuses',
    'available_transitions',
    'categorize',
    'classify',
    'get_config',
]
