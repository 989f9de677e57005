"""Remote entities as reported by the Archestra API."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


# Permission tokens known to the backend at the time of writing. Tokens are
# passed through as opaque strings; this list is informational only.
PERMISSION_AGENTS_READ = "agents:read"
PERMISSION_AGENTS_WRITE = "agents:write"
PERMISSION_MCP_SERVERS_READ = "mcp_servers:read"

KNOWN_PERMISSIONS = (
    PERMISSION_AGENTS_READ,
    PERMISSION_AGENTS_WRITE,
    PERMISSION_MCP_SERVERS_READ,
)


class PayloadError(ValueError):
    """Response body does not have the expected shape."""
    pass


@dataclass(frozen=True)
class Role:
    """Custom RBAC role."""
    id: str
    name: str
    description: Optional[str] = None
    permissions: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: Any) -> "Role":
        """Build a Role from a JSON object.

        Raises:
            PayloadError: If required fields are missing or mistyped
        """
        if not isinstance(payload, dict):
            raise PayloadError(f"Role payload must be an object, got {type(payload).__name__}")

        role_id = payload.get("id")
        name = payload.get("name")
        if not isinstance(role_id, str) or not role_id:
            raise PayloadError("Role payload is missing 'id'")
        if not isinstance(name, str):
            raise PayloadError("Role payload is missing 'name'")

        description = payload.get("description")
        if description is not None and not isinstance(description, str):
            raise PayloadError("Role 'description' must be a string or null")

        permissions = payload.get("permissions") or []
        if not isinstance(permissions, list) or not all(isinstance(p, str) for p in permissions):
            raise PayloadError("Role 'permissions' must be a list of strings")

        return cls(id=role_id, name=name, description=description, permissions=tuple(permissions))


@dataclass(frozen=True)
class User:
    """Archestra user, read-only from this library's point of view."""
    id: str
    name: str
    email: str
    email_verified: bool = False
    image: Optional[str] = None
    role: Optional[str] = None
    banned: bool = False
    ban_reason: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "User":
        if not isinstance(payload, dict):
            raise PayloadError(f"User payload must be an object, got {type(payload).__name__}")
        user_id = payload.get("id")
        if not isinstance(user_id, str) or not user_id:
            raise PayloadError("User payload is missing 'id'")
        return cls(
            id=user_id,
            name=payload.get("name") or "",
            email=payload.get("email") or "",
            email_verified=bool(payload.get("emailVerified", False)),
            image=payload.get("image"),
            role=payload.get("role"),
            banned=bool(payload.get("banned", False)),
            ban_reason=payload.get("banReason"),
        )
