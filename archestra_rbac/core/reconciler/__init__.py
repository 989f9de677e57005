"""Resource reconcilers: one per resource kind, one instance converged per call."""
from .base import AssignmentGateway, BaseReconciler, RoleGateway, UserGateway
from .roles import RoleReconciler
from .assignments import AssignmentReconciler
from .lookups import RoleLookup, UserLookup

__all__ = [
    "AssignmentGateway",
    "BaseReconciler",
    "RoleGateway",
    "UserGateway",
    "RoleReconciler",
    "AssignmentReconciler",
    "RoleLookup",
    "UserLookup",
]
