"""Archestra API client library.

This package is the Remote Gateway used by the reconcilers: one HTTP call per
method, each returning a tagged result.

Architecture:
- client.py: HTTP client with API key auth, timeouts and cancellation
- results.py: Ok / NotFound / Unexpected result types
- roles.py: Role endpoints (fetch, create, update, delete)
- users.py: User lookup and user-role assignment endpoints
- exceptions.py: Typed exceptions for transport failures

Usage:
    from archestra_rbac.core.gateway import ArchestraClient, RoleService, UserService

    client = ArchestraClient("http://localhost:9000/api", api_key="archestra_...")
    roles = RoleService(client)
    result = roles.fetch_role("1b4e28ba-2fa1-11d2-883f-0016d3cca427")
"""
from .client import (
    ArchestraClient,
    create_client_from_config,
    REQUEST_TIMEOUT,
    DEFAULT_BASE_URL,
)
from .exceptions import (
    ArchestraError,
    TransportError,
    NotAuthenticatedError,
)
from .results import (
    GatewayResult,
    Ok,
    NotFound,
    Unexpected,
)
from .roles import RoleService
from .users import UserService

__all__ = [
    # Client
    "ArchestraClient",
    "create_client_from_config",
    "REQUEST_TIMEOUT",
    "DEFAULT_BASE_URL",

    # Exceptions
    "ArchestraError",
    "TransportError",
    "NotAuthenticatedError",

    # Results
    "GatewayResult",
    "Ok",
    "NotFound",
    "Unexpected",

    # Services
    "RoleService",
    "UserService",
]
