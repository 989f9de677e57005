"""Wiring: build the client, gateway services and reconcilers from configuration.

Every reconciler receives its gateway here; nothing is looked up from module
globals.
"""
from __future__ import annotations

from dataclasses import dataclass

from archestra_rbac.config import GatewayConfig
from archestra_rbac.core.gateway import ArchestraClient, RoleService, UserService, create_client_from_config
from archestra_rbac.core.reconciler import AssignmentReconciler, RoleLookup, RoleReconciler, UserLookup


@dataclass
class Provider:
    client: ArchestraClient
    roles: RoleReconciler
    assignments: AssignmentReconciler
    role_lookup: RoleLookup
    user_lookup: UserLookup

    def close(self) -> None:
        self.client.close()


def build_provider(config: GatewayConfig, client: ArchestraClient | None = None) -> Provider:
    """Assemble reconcilers around one shared HTTP client.

    Args:
        config: Loaded settings
        client: Pre-built client (tests); built from config when omitted
    """
    client = client or create_client_from_config(config)
    role_service = RoleService(client)
    user_service = UserService(client)
    return Provider(
        client=client,
        roles=RoleReconciler(role_service),
        assignments=AssignmentReconciler(user_service, verify_after_create=config.verify_assignments),
        role_lookup=RoleLookup(role_service),
        user_lookup=UserLookup(user_service),
    )
