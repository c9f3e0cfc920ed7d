from .transition_service import (
    StatusStore,
    TransitionExecutor,
    TransitionRequest,
    TransitionResult,
)
from .status_store import DjangoStatusStore

__all__ = [
    'DjangoStatusStore',
    'StatusStore',
    'TransitionExecutor',
    'TransitionRequest',
    'TransitionResult',
]
