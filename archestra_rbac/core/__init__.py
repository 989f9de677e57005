"""Core Reconciliation Module

This module converges RBAC objects (roles and user-role assignments) against
the Archestra API, independent of any CLI or state-store front-end.

Architecture:
    - Stateless: every call receives its state and returns the new state
    - Gateways injected at construction, testable with in-memory fakes
    - Reusable across interfaces (CLI, IaC plugins, scripts)

Module Structure:
    - gateway/      : Low-level Archestra API client (one HTTP call per method)
    - reconciler/   : Lifecycle reconcilers and read-only lookups
    - identity.py   : Composite "user_id:role_id" identifiers
    - drift.py      : Remote-to-state projection and drift reporting
    - state.py      : RoleState / AssignmentState records
    - models.py     : Remote Role / User entities
    - context.py    : Cancellation and caller deadline
    - validators.py : Desired-state validation
    - exceptions.py : Reconciler error taxonomy

Public APIs:
    Reconcilers (archestra_rbac.core.reconciler):
        - RoleReconciler.create() / read() / update() / delete() / import_state()
        - AssignmentReconciler.create() / read() / update() / delete() / import_state()
        - RoleLookup.get(), UserLookup.get()

    Identity (archestra_rbac.core.identity):
        - encode(), decode()

    Errors (archestra_rbac.core.exceptions):
        - GatewayError, ProtocolError, OperationCancelled
        - InvalidComponent, MalformedIdentifier, InvalidDesiredState
        - ReplacementRequired, ResourceNotFoundError
"""
