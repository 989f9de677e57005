"""Reconciler-level exceptions.

Every failure raised by a reconciler carries the lifecycle operation and the
resource kind it happened in, so callers can print a clear message without
inspecting the exception type.
"""
from __future__ import annotations

from typing import Optional


class ReconcileError(Exception):
    """Base exception for all reconciliation failures.

    Attributes:
        operation: Lifecycle operation (create, read, update, delete, import)
        resource_kind: Resource kind (role, user_role_assignment, user)
    """

    def __init__(self, message: str, *, operation: str = "", resource_kind: str = ""):
        self.operation = operation
        self.resource_kind = resource_kind
        self.message = message
        prefix = f"[{resource_kind}:{operation}] " if resource_kind and operation else ""
        super().__init__(f"{prefix}{message}")


class GatewayError(ReconcileError):
    """Transport-level failure talking to the remote API. Never retried here."""

    def __init__(self, message: str, *, operation: str = "", resource_kind: str = "", cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message, operation=operation, resource_kind=resource_kind)


class ProtocolError(ReconcileError):
    """Unexpected status code or response shape.

    Attributes:
        status: Observed HTTP status code (0 when unknown)
        body: Raw response body, for diagnosis
    """

    def __init__(self, message: str, *, status: int = 0, body: str = "", operation: str = "", resource_kind: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"{message} (status {status})", operation=operation, resource_kind=resource_kind)


class OperationCancelled(ReconcileError):
    """The invocation context was cancelled or its deadline passed."""
    pass


class IdentifierError(ReconcileError, ValueError):
    """Local identifier validation failure, raised before any network call."""
    pass


class InvalidComponent(IdentifierError):
    """A composite identifier component is empty or contains the separator."""
    pass


class MalformedIdentifier(IdentifierError):
    """A composite identifier does not split into exactly two non-empty parts."""
    pass


class InvalidDesiredState(ReconcileError, ValueError):
    """Desired attributes failed local validation."""
    pass


class ReplacementRequired(ReconcileError):
    """The requested change cannot be applied in place; destroy and recreate."""

    def __init__(self, message: str, *, changed: tuple[str, ...] = (), operation: str = "update", resource_kind: str = ""):
        self.changed = changed
        super().__init__(message, operation=operation, resource_kind=resource_kind)


class ResourceNotFoundError(ReconcileError):
    """A lookup or import targeted an object the remote system does not hold."""
    pass
