"""Input validation helpers for desired state."""
from __future__ import annotations

from typing import Iterable, Optional

from .exceptions import InvalidDesiredState
from .state import ASSIGNMENT_KIND, ROLE_KIND, AssignmentState, RoleState


def validate_role_name(name: Optional[str]) -> str:
    """Validate a role name.

    Args:
        name: Role name from desired state

    Returns:
        The name, unchanged

    Raises:
        InvalidDesiredState: If the name is missing or blank
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidDesiredState("Role name is required", resource_kind=ROLE_KIND)
    return name


def validate_permissions(permissions: Optional[Iterable[str]]) -> tuple[str, ...]:
    """Validate a permission list. Empty is allowed; order is preserved.

    Raises:
        InvalidDesiredState: If permissions is missing or holds a non-string or blank token
    """
    if permissions is None or isinstance(permissions, str):
        raise InvalidDesiredState("Role permissions must be a list of strings", resource_kind=ROLE_KIND)
    tokens = tuple(permissions)
    for token in tokens:
        if not isinstance(token, str) or not token.strip():
            raise InvalidDesiredState(f"Invalid permission token: {token!r}", resource_kind=ROLE_KIND)
    return tokens


def validate_role_state(desired: RoleState) -> RoleState:
    validate_role_name(desired.name)
    validate_permissions(desired.permissions)
    if desired.description is not None and not isinstance(desired.description, str):
        raise InvalidDesiredState("Role description must be a string", resource_kind=ROLE_KIND)
    return desired


def validate_assignment_state(desired: AssignmentState) -> AssignmentState:
    """Both ids are required; separator checks happen in the identity codec."""
    if not desired.user_id:
        raise InvalidDesiredState("user_id is required", resource_kind=ASSIGNMENT_KIND)
    if not desired.role_id:
        raise InvalidDesiredState("role_id is required", resource_kind=ASSIGNMENT_KIND)
    return desired
