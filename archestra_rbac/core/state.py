"""State records exchanged with the surrounding state store.

The same record types describe desired state (``id`` is None until the remote
system assigns one) and persisted, remote-confirmed state.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

ROLE_KIND = "role"
ASSIGNMENT_KIND = "user_role_assignment"


@dataclass(frozen=True)
class RoleState:
    """Role snapshot: ``{id, name, description?, permissions}``."""
    name: str
    permissions: tuple[str, ...] = field(default_factory=tuple)
    description: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "permissions": list(self.permissions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoleState":
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            description=data.get("description"),
            permissions=tuple(data.get("permissions") or ()),
        )


@dataclass(frozen=True)
class AssignmentState:
    """User-role assignment snapshot: ``{id, user_id, role_id}``.

    ``id`` is the composite ``user_id:role_id`` and is None in desired records.
    """
    user_id: str
    role_id: str
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "user_id": self.user_id, "role_id": self.role_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssignmentState":
        return cls(
            id=data.get("id"),
            user_id=data.get("user_id") or "",
            role_id=data.get("role_id") or "",
        )


def state_from_dict(kind: str, data: Dict[str, Any]):
    """Rebuild a persisted record of the given kind."""
    if kind == ROLE_KIND:
        return RoleState.from_dict(data)
    if kind == ASSIGNMENT_KIND:
        return AssignmentState.from_dict(data)
    raise ValueError(f"Unknown resource kind: {kind}")
