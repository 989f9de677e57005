"""Lifecycle reconciliation for custom RBAC roles."""
from __future__ import annotations

import logging
from typing import Optional

from ..context import InvocationContext
from ..drift import diff_role, role_state_from_remote
from ..exceptions import MalformedIdentifier, ResourceNotFoundError
from ..gateway.results import NotFound, Ok
from ..state import ROLE_KIND, RoleState
from ..validators import validate_role_state
from .base import BaseReconciler, RoleGateway

logger = logging.getLogger(__name__)


class RoleReconciler(BaseReconciler):
    """Converges one role instance per call.

    The remote system owns the role id and is authoritative after every
    successful call: create, read and update all return the remote snapshot,
    not the caller's input.

    Usage:
        reconciler = RoleReconciler(RoleService(client))
        state = reconciler.create(RoleState(name="Auditors", permissions=("agents:read",)))
        state = reconciler.read(state)   # None once the role is gone
    """

    resource_kind = ROLE_KIND

    def __init__(self, gateway: RoleGateway):
        """Initialize role reconciler.

        Args:
            gateway: Role endpoints of the remote API
        """
        self.gateway = gateway

    def _require_id(self, operation: str, state: RoleState) -> str:
        if not state.id:
            raise MalformedIdentifier("Role state has no id", operation=operation, resource_kind=self.resource_kind)
        return state.id

    def _fetch(self, operation: str, role_id: str, ctx: Optional[InvocationContext]) -> Optional[RoleState]:
        result = self._call(operation, self.gateway.fetch_role, role_id, ctx=ctx)
        if isinstance(result, NotFound):
            return None
        if not isinstance(result, Ok):
            raise self._protocol_error(operation, result, "expected 200 OK with a role body")
        return role_state_from_remote(result.payload)

    def create(self, desired: RoleState, ctx: Optional[InvocationContext] = None) -> RoleState:
        """Create the role and return the remote-confirmed state.

        Args:
            desired: Desired attributes (id is ignored)
            ctx: Invocation context

        Returns:
            New state record with the remote-assigned id

        Raises:
            InvalidDesiredState: If the name is blank or permissions are not strings
            GatewayError: On transport failure (nothing is recorded)
            ProtocolError: If the response lacks a role payload
        """
        validate_role_state(desired)
        result = self._call(
            "create",
            self.gateway.create_role,
            desired.name,
            tuple(desired.permissions),
            desired.description,
            ctx=ctx,
        )
        if not isinstance(result, Ok):
            raise self._protocol_error("create", result, "expected 201 Created with a role body")

        state = role_state_from_remote(result.payload)
        logger.info("Created role %s (%s)", state.name, state.id)
        return state

    def read(self, prior: RoleState, ctx: Optional[InvocationContext] = None) -> Optional[RoleState]:
        """Refresh state from the remote system.

        Returns:
            The remote snapshot, replacing every recorded attribute, or None when
            the role no longer exists and the caller must purge its state

        Raises:
            GatewayError: On transport failure
            ProtocolError: On any status other than 200/404 or a malformed body
        """
        role_id = self._require_id("read", prior)
        observed = self._fetch("read", role_id, ctx)
        if observed is None:
            logger.info("Role %s no longer exists; removing from state", role_id)
            return None

        changes = diff_role(prior, observed)
        if changes:
            logger.info("Drift detected on role %s: %s", role_id, ", ".join(sorted(changes)))
        return observed

    def update(self, desired: RoleState, prior: RoleState, ctx: Optional[InvocationContext] = None) -> RoleState:
        """Apply desired attributes to an existing role.

        Name and permissions are always sent. Description is sent only when set;
        a None description leaves the remote value untouched.

        Raises:
            InvalidDesiredState: On invalid desired attributes
            GatewayError: On transport failure
            ProtocolError: On any non-success response, including 404
        """
        validate_role_state(desired)
        role_id = self._require_id("update", prior)
        result = self._call(
            "update",
            self.gateway.update_role,
            role_id,
            desired.name,
            tuple(desired.permissions),
            desired.description,
            ctx=ctx,
        )
        if not isinstance(result, Ok):
            raise self._protocol_error("update", result, "expected 200 OK with a role body")

        state = role_state_from_remote(result.payload)
        logger.info("Updated role %s (%s)", state.name, role_id)
        return state

    def delete(self, prior: RoleState, ctx: Optional[InvocationContext] = None) -> None:
        """Delete the role. A role that is already gone counts as deleted.

        Raises:
            GatewayError: On transport failure
            ProtocolError: On any status other than 200/204/404; the role is not assumed deleted
        """
        role_id = self._require_id("delete", prior)
        result = self._call("delete", self.gateway.delete_role, role_id, ctx=ctx)
        if isinstance(result, NotFound):
            logger.info("Role %s already absent", role_id)
            return
        if not isinstance(result, Ok):
            raise self._protocol_error("delete", result, "expected 200, 204 or 404")
        logger.info("Deleted role %s", role_id)

    def import_state(self, identifier: str, ctx: Optional[InvocationContext] = None) -> RoleState:
        """Adopt an existing role by id, then populate it through a read.

        Raises:
            MalformedIdentifier: If the identifier is empty
            ResourceNotFoundError: If no role with that id exists
        """
        if not identifier:
            raise MalformedIdentifier("Role import id must not be empty", operation="import", resource_kind=self.resource_kind)
        state = self._fetch("import", identifier, ctx)
        if state is None:
            raise ResourceNotFoundError(
                f"Cannot import non-existent role {identifier}",
                operation="import",
                resource_kind=self.resource_kind,
            )
        logger.info("Imported role %s (%s)", state.name, state.id)
        return state
