"""Role permission checks against module.ROLE_PERMISSIONS."""
from .module import PERMISSIONS, ROLE_PERMISSIONS
from .statuses import coerce_role


def get_role_permissions(role) -> list:
    """Permission codes granted to a role. ``*`` expands to every permission."""
    actor = coerce_role(role)
    if actor is None:
        return []
    granted = ROLE_PERMISSIONS.get(actor.value, [])
    if '*' in granted:
        return [code for code, _label in PERMISSIONS]
    return list(granted)


def role_has_permission(role, permission: str) -> bool:
    return permission in get_role_permissions(role)
