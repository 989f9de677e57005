"""Archestra user and user-role assignment endpoints."""
from __future__ import annotations
from typing import Any, List, Optional
from urllib.parse import quote

from ..context import InvocationContext
from ..models import PayloadError, Role, User
from .client import ArchestraClient
from .results import GatewayResult, NotFound, Ok, parse_json, unexpected


def _parse_role_list(payload: Any) -> List[Role]:
    if not isinstance(payload, list):
        raise PayloadError(f"Role listing must be an array, got {type(payload).__name__}")
    return [Role.from_payload(item) for item in payload]


class UserService:
    """Gateway for users and their role assignments.

    Assignments have no endpoint of their own: they are read through the
    user's full role listing and written through the user's roles collection.
    """

    def __init__(self, client: ArchestraClient):
        """Initialize user service.

        Args:
            client: Configured Archestra client
        """
        self.client = client

    @staticmethod
    def _user_path(user_id: str) -> str:
        return f"/users/{quote(user_id, safe='')}"

    def fetch_user(self, user_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[User]:
        """Return Ok(User), NotFound, or Unexpected."""
        resp = self.client.get(self._user_path(user_id), ctx=ctx)
        return parse_json(resp, User.from_payload, ok_statuses=(200,))

    def list_roles_for_user(self, user_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[List[Role]]:
        """List every role assigned to a user.

        Returns:
            Ok(list of Role), NotFound if the user does not exist, or Unexpected
        """
        resp = self.client.get(f"{self._user_path(user_id)}/roles", ctx=ctx)
        return parse_json(resp, _parse_role_list, ok_statuses=(200,))

    def create_assignment(self, user_id: str, role_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[None]:
        """Assign a role to a user.

        The backend gives no usable confirmation payload, so any 2xx is Ok and
        the body is ignored.
        """
        resp = self.client.post(f"{self._user_path(user_id)}/roles", json={"roleId": role_id}, ctx=ctx)
        if 200 <= resp.status_code < 300:
            return Ok(status=resp.status_code)
        return unexpected(resp)

    def delete_assignment(self, user_id: str, role_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[None]:
        """Remove a role from a user.

        Returns:
            Ok on 200/204, NotFound on 404, Unexpected otherwise
        """
        resp = self.client.delete(f"{self._user_path(user_id)}/roles/{quote(role_id, safe='')}", ctx=ctx)
        if resp.status_code in (200, 204):
            return Ok(status=resp.status_code)
        if resp.status_code == 404:
            return NotFound()
        return unexpected(resp)
