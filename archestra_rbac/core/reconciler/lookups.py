"""Read-only lookups for objects managed elsewhere."""
from __future__ import annotations

from typing import Optional

from ..context import InvocationContext
from ..drift import role_state_from_remote
from ..exceptions import ResourceNotFoundError
from ..gateway.results import NotFound, Ok
from ..models import User
from ..state import ROLE_KIND, RoleState
from .base import BaseReconciler, RoleGateway, UserGateway


class RoleLookup(BaseReconciler):
    """Fetch a role by id. Unlike a resource read, a missing role is an error."""

    resource_kind = ROLE_KIND

    def __init__(self, gateway: RoleGateway):
        self.gateway = gateway

    def get(self, role_id: str, ctx: Optional[InvocationContext] = None) -> RoleState:
        result = self._call("read", self.gateway.fetch_role, role_id, ctx=ctx)
        if isinstance(result, NotFound):
            raise ResourceNotFoundError(f"Role with ID {role_id} not found", operation="read", resource_kind=self.resource_kind)
        if not isinstance(result, Ok):
            raise self._protocol_error("read", result, "expected 200 OK with a role body")
        return role_state_from_remote(result.payload)


class UserLookup(BaseReconciler):
    """Fetch a user by id."""

    resource_kind = "user"

    def __init__(self, gateway: UserGateway):
        self.gateway = gateway

    def get(self, user_id: str, ctx: Optional[InvocationContext] = None) -> User:
        result = self._call("read", self.gateway.fetch_user, user_id, ctx=ctx)
        if isinstance(result, NotFound):
            raise ResourceNotFoundError(f"User with ID {user_id} not found", operation="read", resource_kind=self.resource_kind)
        if not isinstance(result, Ok):
            raise self._protocol_error("read", result, "expected 200 OK with a user body")
        return result.payload
