"""
Transition Authorizer

Decides which status changes a role may perform on an appointment. The rules
are data (a TransitionTable), not branching code, so deployments can replace
them through ``APPOINTMENT_LIFECYCLE["TRANSITIONS"]``.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional

from django.core.exceptions import ImproperlyConfigured

from . import conf
from .statuses import (
    ActorRole,
    CanonicalStatus,
    TERMINAL_STATUSES,
    coerce_role,
    coerce_status,
    get_config,
)


CLINICAL_ROLES = frozenset([ActorRole.DOCTOR, ActorRole.STAFF, ActorRole.ADMIN, ActorRole.SUPERADMIN])
ORG_ROLES = frozenset([ActorRole.STAFF, ActorRole.ADMIN, ActorRole.SUPERADMIN])
PATIENT_ONLY = frozenset([ActorRole.PATIENT])


@dataclass(frozen=True)
class Transition:
    """A legal status change, gated by role and optionally by a reason."""

    from_status: CanonicalStatus
    to_status: CanonicalStatus
    allowed_roles: frozenset
    requires_reason: bool = False

    def allows(self, role) -> bool:
        return coerce_role(role) in self.allowed_roles

    def to_dict(self):
        return {
            'from': self.from_status.value,
            'to': self.to_status.value,
            'roles': sorted(r.value for r in self.allowed_roles),
            'requires_reason': self.requires_reason,
        }


DEFAULT_TRANSITIONS = [
    Transition(CanonicalStatus.PENDING, CanonicalStatus.CONFIRMED, CLINICAL_ROLES),
    Transition(CanonicalStatus.PENDING, CanonicalStatus.CANCELLED_BY_PATIENT, PATIENT_ONLY, requires_reason=True),
    Transition(CanonicalStatus.PENDING, CanonicalStatus.CANCELLED_BY_ORG, ORG_ROLES, requires_reason=True),
    Transition(CanonicalStatus.CONFIRMED, CanonicalStatus.IN_PROGRESS, CLINICAL_ROLES),
    Transition(CanonicalStatus.CONFIRMED, CanonicalStatus.CANCELLED_BY_PATIENT, PATIENT_ONLY, requires_reason=True),
    Transition(CanonicalStatus.CONFIRMED, CanonicalStatus.CANCELLED_BY_ORG, ORG_ROLES, requires_reason=True),
    Transition(CanonicalStatus.CONFIRMED, CanonicalStatus.NO_SHOW, CLINICAL_ROLES, requires_reason=True),
    Transition(CanonicalStatus.IN_PROGRESS, CanonicalStatus.COMPLETED, CLINICAL_ROLES),
]


class TransitionTable:
    """Validated collection of Transitions."""

    def __init__(self, transitions: Iterable[Transition]):
        self._by_source = {}
        for transition in transitions:
            self._validate(transition)
            outgoing = self._by_source.setdefault(transition.from_status, [])
            if any(t.to_status == transition.to_status for t in outgoing):
                raise ImproperlyConfigured(
                    f"Duplicate transition {transition.from_status.value} -> {transition.to_status.value}"
                )
            outgoing.append(transition)

    @staticmethod
    def _validate(transition):
        if transition.from_status == transition.to_status:
            raise ImproperlyConfigured(f"Self-transition on '{transition.from_status.value}' is not allowed")
        if transition.from_status in TERMINAL_STATUSES:
            raise ImproperlyConfigured(f"Terminal status '{transition.from_status.value}' cannot have transitions")
        if transition.to_status == CanonicalStatus.UNKNOWN:
            raise ImproperlyConfigured("'unknown' is never a transition target")
        if not transition.allowed_roles:
            raise ImproperlyConfigured(
                f"Transition {transition.from_status.value} -> {transition.to_status.value} has no roles"
            )

    @classmethod
    def from_config(cls, rules) -> 'TransitionTable':
        """Build a table from dicts: {"from", "to", "roles", "requires_reason"}."""
        transitions = []
        for rule in rules:
            try:
                source, target, roles = rule['from'], rule['to'], rule['roles']
            except (KeyError, TypeError) as e:
                raise ImproperlyConfigured(f"Invalid transition rule {rule!r}") from e
            from_status = coerce_status(source)
            to_status = coerce_status(target)
            if from_status is None or to_status is None:
                raise ImproperlyConfigured(f"Transition rule {rule!r} uses an unknown status")
            allowed = set()
            for role in roles:
                actor = coerce_role(role)
                if actor is None:
                    raise ImproperlyConfigured(f"Transition rule {rule!r} uses unknown role {role!r}")
                allowed.add(actor)
            transitions.append(Transition(
                from_status,
                to_status,
                frozenset(allowed),
                requires_reason=bool(rule.get('requires_reason', False)),
            ))
        return cls(transitions)

    def __iter__(self):
        for outgoing in self._by_source.values():
            yield from outgoing

    def outgoing(self, status) -> List[Transition]:
        status = coerce_status(status)
        if status is None or status in TERMINAL_STATUSES:
            return []
        return list(self._by_source.get(status, []))

    def available(self, status, role) -> List[Transition]:
        actor = coerce_role(role)
        if actor is None:
            return []
        allowed = [t for t in self.outgoing(status) if actor in t.allowed_roles]
        return sorted(allowed, key=lambda t: get_config(t.to_status).sort_priority)


@lru_cache(maxsize=None)
def get_transition_table() -> TransitionTable:
    """The rule table in effect."""
    rules = conf.get_setting('TRANSITIONS')
    if rules is None:
        return TransitionTable(DEFAULT_TRANSITIONS)
    return TransitionTable.from_config(rules)


conf.on_reload(get_transition_table.cache_clear)


def available_transitions(status, role) -> List[Transition]:
    """
    Legal transitions for a role, least destructive target first.

    Terminal statuses always yield an empty list, whatever the role.
    """
    return get_transition_table().available(status, role)


def find_transition(from_status, to_status, role) -> Optional[Transition]:
    target = coerce_status(to_status)
    for transition in available_transitions(from_status, role):
        if transition.to_status == target:
            return transition
    return None


def is_valid_transition(from_status, to_status, role) -> bool:
    return find_transition(from_status, to_status, role) is not None
