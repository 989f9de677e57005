"""Archestra role endpoints."""
from __future__ import annotations
from typing import Optional, Sequence
from urllib.parse import quote

from ..context import InvocationContext
from ..models import Role
from .client import ArchestraClient
from .results import GatewayResult, NotFound, Ok, parse_json, unexpected


class RoleService:
    """Gateway for custom RBAC roles.

    Every method performs exactly one HTTP call and returns a tagged result.
    """

    def __init__(self, client: ArchestraClient):
        """Initialize role service.

        Args:
            client: Configured Archestra client
        """
        self.client = client

    @staticmethod
    def _path(role_id: str) -> str:
        return f"/roles/{quote(role_id, safe='')}"

    @staticmethod
    def _body(name: str, permissions: Sequence[str], description: Optional[str]) -> dict:
        body = {"name": name, "permissions": list(permissions)}
        # An absent description means "leave it alone", never "clear it".
        if description is not None:
            body["description"] = description
        return body

    def fetch_role(self, role_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[Role]:
        """Fetch a role by id.

        Returns:
            Ok(Role), NotFound, or Unexpected
        """
        resp = self.client.get(self._path(role_id), ctx=ctx)
        return parse_json(resp, Role.from_payload, ok_statuses=(200,))

    def create_role(
        self,
        name: str,
        permissions: Sequence[str],
        description: Optional[str] = None,
        ctx: Optional[InvocationContext] = None,
    ) -> GatewayResult[Role]:
        """Create a role; the backend assigns its id.

        Returns:
            Ok(Role) on 200/201 with a role body, otherwise Unexpected (or NotFound on 404)
        """
        resp = self.client.post("/roles", json=self._body(name, permissions, description), ctx=ctx)
        return parse_json(resp, Role.from_payload, ok_statuses=(200, 201))

    def update_role(
        self,
        role_id: str,
        name: str,
        permissions: Sequence[str],
        description: Optional[str] = None,
        ctx: Optional[InvocationContext] = None,
    ) -> GatewayResult[Role]:
        """Partially update a role. Name and permissions are always sent."""
        resp = self.client.put(self._path(role_id), json=self._body(name, permissions, description), ctx=ctx)
        return parse_json(resp, Role.from_payload, ok_statuses=(200,))

    def delete_role(self, role_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[None]:
        """Delete a role.

        Returns:
            Ok on 200/204, NotFound on 404, Unexpected otherwise
        """
        resp = self.client.delete(self._path(role_id), ctx=ctx)
        if resp.status_code in (200, 204):
            return Ok(status=resp.status_code)
        if resp.status_code == 404:
            return NotFound()
        return unexpected(resp)
