"""Archestra RBAC reconciliation package.

To reconcile resources:
    from archestra_rbac.config import load_settings
    from archestra_rbac.provider import build_provider

    provider = build_provider(load_settings())
    state = provider.roles.create(RoleState(name="Auditors", permissions=("agents:read",)))

To use the API client directly:
    from archestra_rbac.core.gateway import ArchestraClient, RoleService
"""

__version__ = "0.1.0"
