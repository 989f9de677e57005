"""Lifecycle reconciliation for user-role assignments.

An assignment is identified only by its (user_id, role_id) pair. The backend has
no endpoint for a single assignment, so reads go through the user's full role
listing, and the state id is the composite built by the identity codec.
"""
from __future__ import annotations

import logging
from typing import Optional

from .. import identity
from ..context import InvocationContext
from ..drift import assignment_present
from ..exceptions import IdentifierError, ProtocolError, ReplacementRequired
from ..gateway.results import NotFound, Ok
from ..state import ASSIGNMENT_KIND, AssignmentState
from ..validators import validate_assignment_state
from .base import AssignmentGateway, BaseReconciler

logger = logging.getLogger(__name__)


class AssignmentReconciler(BaseReconciler):
    """Converges one user-role assignment per call.

    Assignments are create/destroy only. Changing either id requires replacement.
    """

    resource_kind = ASSIGNMENT_KIND

    def __init__(self, gateway: AssignmentGateway, *, verify_after_create: bool = False):
        """Initialize assignment reconciler.

        Args:
            gateway: User-role assignment endpoints of the remote API
            verify_after_create: Re-read the user's roles after create and fail
                if the new role is not listed
        """
        self.gateway = gateway
        self.verify_after_create = verify_after_create

    def _encode(self, operation: str, user_id: str, role_id: str) -> str:
        try:
            return identity.encode(user_id, role_id)
        except IdentifierError as exc:
            raise type(exc)(exc.message, operation=operation, resource_kind=self.resource_kind) from exc

    def _decode(self, operation: str, assignment_id: Optional[str]) -> tuple[str, str]:
        try:
            return identity.decode(assignment_id or "")
        except IdentifierError as exc:
            raise type(exc)(exc.message, operation=operation, resource_kind=self.resource_kind) from exc

    def _present(self, operation: str, user_id: str, role_id: str, ctx: Optional[InvocationContext]) -> bool:
        result = self._call(operation, self.gateway.list_roles_for_user, user_id, ctx=ctx)
        if isinstance(result, NotFound):
            return False
        if not isinstance(result, Ok):
            raise self._protocol_error(operation, result, "expected 200 OK with a role listing")
        return assignment_present(result.payload, role_id)

    def create(self, desired: AssignmentState, ctx: Optional[InvocationContext] = None) -> AssignmentState:
        """Assign the role to the user.

        The composite id is built before the call, so invalid ids never reach the
        network. Any 2xx response commits state; no confirmation payload is required.

        Raises:
            InvalidDesiredState: If either id is missing
            InvalidComponent: If either id contains the separator
            GatewayError: On transport failure
            ProtocolError: On a non-2xx response, or when verification is enabled
                and the role is not listed afterwards
        """
        validate_assignment_state(desired)
        assignment_id = self._encode("create", desired.user_id, desired.role_id)

        result = self._call("create", self.gateway.create_assignment, desired.user_id, desired.role_id, ctx=ctx)
        if not isinstance(result, Ok):
            raise self._protocol_error("create", result, "role assignment was rejected")

        if self.verify_after_create and not self._present("create", desired.user_id, desired.role_id, ctx):
            raise ProtocolError(
                f"Role {desired.role_id} not listed for user {desired.user_id} after assignment",
                status=result.status,
                operation="create",
                resource_kind=self.resource_kind,
            )

        logger.info("Assigned role %s to user %s", desired.role_id, desired.user_id)
        return AssignmentState(id=assignment_id, user_id=desired.user_id, role_id=desired.role_id)

    def read(self, prior: AssignmentState, ctx: Optional[InvocationContext] = None) -> Optional[AssignmentState]:
        """Check that the assignment still exists.

        Returns:
            The prior record unchanged when the role is listed for the user,
            None when it is not (or the user is gone) and state must be purged

        Raises:
            MalformedIdentifier: If the stored id is not ``user_id:role_id``
            GatewayError: On transport failure
            ProtocolError: On any status other than 200/404 or a malformed listing
        """
        user_id, role_id = self._decode("read", prior.id)
        if not self._present("read", user_id, role_id, ctx):
            logger.info("Role %s no longer assigned to user %s; removing from state", role_id, user_id)
            return None
        return prior

    def requires_replacement(self, desired: AssignmentState, prior: AssignmentState) -> tuple[str, ...]:
        """Names of identity fields that differ; non-empty means destroy and recreate."""
        return tuple(
            attr for attr in ("user_id", "role_id") if getattr(desired, attr) != getattr(prior, attr)
        )

    def update(self, desired: AssignmentState, prior: AssignmentState, ctx: Optional[InvocationContext] = None) -> AssignmentState:
        """Assignments cannot be updated in place.

        Returns:
            The prior record when nothing changed

        Raises:
            ReplacementRequired: If user_id or role_id changed
        """
        changed = self.requires_replacement(desired, prior)
        if changed:
            raise ReplacementRequired(
                f"Changing {', '.join(changed)} requires replacing the assignment",
                changed=changed,
                resource_kind=self.resource_kind,
            )
        return prior

    def delete(self, prior: AssignmentState, ctx: Optional[InvocationContext] = None) -> None:
        """Remove the role from the user. An assignment that is already gone counts as deleted.

        Raises:
            MalformedIdentifier: If the stored id is not ``user_id:role_id``
            GatewayError: On transport failure
            ProtocolError: On any status other than 200/204/404
        """
        user_id, role_id = self._decode("delete", prior.id)
        result = self._call("delete", self.gateway.delete_assignment, user_id, role_id, ctx=ctx)
        if isinstance(result, NotFound):
            logger.info("Role %s already unassigned from user %s", role_id, user_id)
            return
        if not isinstance(result, Ok):
            raise self._protocol_error("delete", result, "expected 200, 204 or 404")
        logger.info("Unassigned role %s from user %s", role_id, user_id)

    def import_state(self, identifier: str) -> AssignmentState:
        """Adopt an assignment from ``user_id:role_id`` without contacting the API.

        Existence is checked by the next read.

        Raises:
            MalformedIdentifier: Unless the identifier has exactly two non-empty parts
        """
        user_id, role_id = self._decode("import", identifier)
        return AssignmentState(id=identifier, user_id=user_id, role_id=role_id)
