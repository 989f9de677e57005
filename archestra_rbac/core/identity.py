"""Composite identifiers for relationship resources.

A user-role assignment has no identifier of its own on the remote side, so the
pair of foreign keys is folded into one opaque string for the state store:

    encode("u1", "r1")  -> "u1:r1"
    decode("u1:r1")     -> ("u1", "r1")
"""
from __future__ import annotations

from .exceptions import InvalidComponent, MalformedIdentifier

SEPARATOR = ":"


def encode(component_a: str, component_b: str) -> str:
    """Join two components into a composite identifier.

    Args:
        component_a: First component (user id for assignments)
        component_b: Second component (role id for assignments)

    Returns:
        Composite identifier string

    Raises:
        InvalidComponent: If a component is empty or contains the separator
    """
    for label, component in (("first", component_a), ("second", component_b)):
        if not component:
            raise InvalidComponent(f"Composite identifier {label} component must not be empty")
        if SEPARATOR in component:
            raise InvalidComponent(
                f"Composite identifier {label} component {component!r} must not contain {SEPARATOR!r}"
            )
    return f"{component_a}{SEPARATOR}{component_b}"


def decode(identifier: str) -> tuple[str, str]:
    """Split a composite identifier into its two components.

    Raises:
        MalformedIdentifier: Unless the identifier splits into exactly two non-empty parts
    """
    parts = (identifier or "").split(SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise MalformedIdentifier(
            f"Identifier {identifier!r} must be in format 'user_id{SEPARATOR}role_id'"
        )
    return parts[0], parts[1]
