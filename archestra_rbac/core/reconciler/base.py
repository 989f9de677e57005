"""Gateway ports and the shared call wrapper used by every reconciler."""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol, Sequence, Union

from ..context import InvocationContext, background
from ..exceptions import GatewayError, OperationCancelled, ProtocolError
from ..gateway.exceptions import TransportError
from ..gateway.results import GatewayResult, NotFound, Unexpected
from ..models import Role, User

logger = logging.getLogger(__name__)


class RoleGateway(Protocol):
    def fetch_role(self, role_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[Role]: ...

    def create_role(
        self,
        name: str,
        permissions: Sequence[str],
        description: Optional[str] = None,
        ctx: Optional[InvocationContext] = None,
    ) -> GatewayResult[Role]: ...

    def update_role(
        self,
        role_id: str,
        name: str,
        permissions: Sequence[str],
        description: Optional[str] = None,
        ctx: Optional[InvocationContext] = None,
    ) -> GatewayResult[Role]: ...

    def delete_role(self, role_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[None]: ...


class AssignmentGateway(Protocol):
    def list_roles_for_user(self, user_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[List[Role]]: ...

    def create_assignment(self, user_id: str, role_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[None]: ...

    def delete_assignment(self, user_id: str, role_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[None]: ...


class UserGateway(Protocol):
    def fetch_user(self, user_id: str, ctx: Optional[InvocationContext] = None) -> GatewayResult[User]: ...


class BaseReconciler:
    """Common plumbing: context checks and error translation around gateway calls."""

    resource_kind = ""

    def _call(self, operation: str, method: Callable[..., GatewayResult], *args, ctx: Optional[InvocationContext] = None) -> GatewayResult:
        """Run one gateway call under the invocation context.

        Raises:
            OperationCancelled: If the context is cancelled before, during or after the call
            GatewayError: On transport failure
            NotAuthenticatedError: If the client has no API key (propagated as-is)
        """
        ctx = ctx or background()
        ctx.check(operation, self.resource_kind)
        try:
            result = method(*args, ctx=ctx)
        except OperationCancelled as exc:
            raise OperationCancelled(exc.message, operation=operation, resource_kind=self.resource_kind) from exc
        except TransportError as exc:
            logger.warning("%s %s failed at transport level: %s", operation, self.resource_kind, exc)
            raise GatewayError(
                f"Unable to {operation} {self.resource_kind}: {exc}",
                operation=operation,
                resource_kind=self.resource_kind,
                cause=exc,
            ) from exc
        ctx.check(operation, self.resource_kind)
        return result

    def _protocol_error(self, operation: str, result: Union[NotFound, Unexpected, object], expected: str) -> ProtocolError:
        status = getattr(result, "status", 0)
        body = getattr(result, "body", "")
        reason = getattr(result, "reason", "")
        message = f"Unexpected API response: {expected}"
        if reason:
            message = f"{message}; {reason}"
        return ProtocolError(
            message,
            status=status,
            body=body,
            operation=operation,
            resource_kind=self.resource_kind,
        )
