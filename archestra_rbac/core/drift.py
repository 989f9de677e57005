"""Drift detection between recorded state and what the remote system holds.

A successful read always replaces the recorded role with the remote snapshot;
``diff_role`` exists only to report what changed, never to merge.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Tuple

from .models import Role
from .state import RoleState

RoleDiff = Dict[str, Tuple[Any, Any]]


def role_state_from_remote(role: Role) -> RoleState:
    """Project a remote role onto a state record, field by field."""
    return RoleState(
        id=role.id,
        name=role.name,
        description=role.description,
        permissions=tuple(role.permissions),
    )


def diff_role(prior: RoleState, observed: RoleState) -> RoleDiff:
    """Return ``{field: (prior, observed)}`` for every attribute that differs.

    Permission order is significant.
    """
    changes: RoleDiff = {}
    for attr in ("id", "name", "description", "permissions"):
        before = getattr(prior, attr)
        after = getattr(observed, attr)
        if before != after:
            changes[attr] = (before, after)
    return changes


def assignment_present(roles: Iterable[Role], role_id: str) -> bool:
    """True if ``role_id`` appears in the full role listing for a user."""
    for role in roles:
        if role.id == role_id:
            return True
    return False
