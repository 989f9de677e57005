"""Reconcile one Archestra RBAC resource per invocation.

This module serves as a CLI wrapper around archestra_rbac reconcilers. State is
kept in a JSON file per resource instance (``--state``); a read that finds the
resource gone deletes that file.
"""
from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

import yaml

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from archestra_rbac.config import load_settings
from archestra_rbac.core.context import InvocationContext
from archestra_rbac.core.exceptions import ReconcileError, ReplacementRequired
from archestra_rbac.core.gateway import ArchestraError
from archestra_rbac.core.state import ASSIGNMENT_KIND, ROLE_KIND, AssignmentState, RoleState, state_from_dict
from archestra_rbac.provider import Provider, build_provider
from scripts import audit


# ─────────────────────────────────────────────────────────────────────────────
# State file and manifest helpers
# ─────────────────────────────────────────────────────────────────────────────
def load_manifest(path: Optional[str]) -> dict[str, Any]:
    """Read desired attributes from a YAML manifest (empty when no path)."""
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest {path} must contain a mapping")
    return data


def read_state(path: Path, kind: str):
    """Load the persisted record of ``kind`` from a state file."""
    if not path.exists():
        raise FileNotFoundError(f"State file {path} does not exist")
    document = json.loads(path.read_text(encoding="utf-8"))
    if document.get("kind") != kind:
        raise ValueError(f"State file {path} holds a {document.get('kind')!r}, not a {kind!r}")
    return state_from_dict(kind, document.get("state") or {})


def write_state(path: Path, kind: str, record) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    document = {"kind": kind, "state": record.to_dict()}
    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")


def purge_state(path: Path) -> None:
    if path.exists():
        path.unlink()


def _load_prior(args: argparse.Namespace, path: Path, kind: str):
    """Read the prior record and remember its id for the failure audit event."""
    prior = read_state(path, kind)
    args.resource_id = prior.id
    return prior


def role_desired(args: argparse.Namespace) -> RoleState:
    """Merge manifest and flags into a desired role; flags win."""
    manifest = load_manifest(getattr(args, "manifest", None))
    permissions = args.permission if args.permission is not None else manifest.get("permissions")
    return RoleState(
        name=args.name if args.name is not None else manifest.get("name", ""),
        description=args.description if args.description is not None else manifest.get("description"),
        permissions=tuple(permissions) if isinstance(permissions, (list, tuple)) else permissions,
    )


def assignment_desired(args: argparse.Namespace) -> AssignmentState:
    manifest = load_manifest(getattr(args, "manifest", None))
    return AssignmentState(
        user_id=args.user_id or manifest.get("user_id", ""),
        role_id=args.role_id or manifest.get("role_id", ""),
    )


def _emit(record) -> None:
    print(json.dumps(record.to_dict() if hasattr(record, "to_dict") else record, indent=2))


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────
def run_command(args: argparse.Namespace, provider: Provider, ctx: InvocationContext) -> tuple[str, str, Optional[str], dict]:
    """Execute one sub-command.

    Returns:
        (operation, resource_kind, resource_id, details) for the audit trail
    """
    state_path = Path(args.state) if args.state else None
    cmd = args.cmd

    if cmd == "create-role":
        record = provider.roles.create(role_desired(args), ctx=ctx)
        write_state(state_path, ROLE_KIND, record)
        _emit(record)
        return "create", ROLE_KIND, record.id, {"name": record.name, "permissions": list(record.permissions)}

    if cmd == "read-role":
        prior = _load_prior(args, state_path, ROLE_KIND)
        record = provider.roles.read(prior, ctx=ctx)
        if record is None:
            purge_state(state_path)
            print(f"[read-role] Role {prior.id} no longer exists; state removed", file=sys.stderr)
            return "read", ROLE_KIND, prior.id, {"removed": True}
        write_state(state_path, ROLE_KIND, record)
        _emit(record)
        return "read", ROLE_KIND, record.id, {"removed": False}

    if cmd == "update-role":
        prior = _load_prior(args, state_path, ROLE_KIND)
        record = provider.roles.update(role_desired(args), prior, ctx=ctx)
        write_state(state_path, ROLE_KIND, record)
        _emit(record)
        return "update", ROLE_KIND, record.id, {"name": record.name, "permissions": list(record.permissions)}

    if cmd == "delete-role":
        prior = _load_prior(args, state_path, ROLE_KIND)
        provider.roles.delete(prior, ctx=ctx)
        purge_state(state_path)
        print(f"[delete-role] Role {prior.id} deleted", file=sys.stderr)
        return "delete", ROLE_KIND, prior.id, {}

    if cmd == "import-role":
        record = provider.roles.import_state(args.id, ctx=ctx)
        write_state(state_path, ROLE_KIND, record)
        _emit(record)
        return "import", ROLE_KIND, record.id, {}

    if cmd == "show-role":
        _emit(provider.role_lookup.get(args.id, ctx=ctx))
        return "read", ROLE_KIND, args.id, {"lookup": True}

    if cmd == "assign-role":
        desired = assignment_desired(args)
        if state_path.exists():
            prior = _load_prior(args, state_path, ASSIGNMENT_KIND)
            try:
                record = provider.assignments.update(desired, prior, ctx=ctx)
            except ReplacementRequired as exc:
                if not args.replace:
                    raise
                print(f"[assign-role] {exc.message}; replacing", file=sys.stderr)
                provider.assignments.delete(prior, ctx=ctx)
                purge_state(state_path)
                record = provider.assignments.create(desired, ctx=ctx)
        else:
            record = provider.assignments.create(desired, ctx=ctx)
        write_state(state_path, ASSIGNMENT_KIND, record)
        _emit(record)
        return "create", ASSIGNMENT_KIND, record.id, {"user_id": record.user_id, "role_id": record.role_id}

    if cmd == "read-assignment":
        prior = _load_prior(args, state_path, ASSIGNMENT_KIND)
        record = provider.assignments.read(prior, ctx=ctx)
        if record is None:
            purge_state(state_path)
            print(f"[read-assignment] Assignment {prior.id} no longer exists; state removed", file=sys.stderr)
            return "read", ASSIGNMENT_KIND, prior.id, {"removed": True}
        _emit(record)
        return "read", ASSIGNMENT_KIND, record.id, {"removed": False}

    if cmd == "unassign-role":
        prior = _load_prior(args, state_path, ASSIGNMENT_KIND)
        provider.assignments.delete(prior, ctx=ctx)
        purge_state(state_path)
        print(f"[unassign-role] Assignment {prior.id} deleted", file=sys.stderr)
        return "delete", ASSIGNMENT_KIND, prior.id, {}

    if cmd == "import-assignment":
        record = provider.assignments.import_state(args.id)
        write_state(state_path, ASSIGNMENT_KIND, record)
        _emit(record)
        return "import", ASSIGNMENT_KIND, record.id, {}

    if cmd == "show-user":
        user = provider.user_lookup.get(args.id, ctx=ctx)
        _emit({"id": user.id, "name": user.name, "email": user.email, "banned": user.banned})
        return "read", "user", user.id, {"lookup": True}

    raise ValueError(f"Unknown command: {cmd}")


STATEFUL_COMMANDS = {
    "create-role", "read-role", "update-role", "delete-role", "import-role",
    "assign-role", "read-assignment", "unassign-role", "import-assignment",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Archestra RBAC reconciler")
    parser.add_argument("--api-url", default=os.environ.get("ARCHESTRA_BASE_URL"))
    parser.add_argument("--api-key", default=None, help="Defaults to ARCHESTRA_API_KEY or /run/secrets/archestra_api_key")
    parser.add_argument("--state", help="State file for the resource instance (JSON)")
    parser.add_argument("--timeout", type=float, default=None, help="Deadline for the whole invocation, in seconds")
    parser.add_argument("--operator", default="automation",
                        help="Operator identifier for audit logs (default: automation)")
    parser.add_argument("--verbose", action="store_true")

    sub = parser.add_subparsers(dest="cmd")

    for name in ("create-role", "update-role"):
        sp = sub.add_parser(name)
        sp.add_argument("--name")
        sp.add_argument("--description")
        sp.add_argument("--permission", action="append", help="Repeat for each permission, order is kept")
        sp.add_argument("--manifest", help="YAML file with name/description/permissions")

    sub.add_parser("read-role")
    sub.add_parser("delete-role")
    sub.add_parser("import-role").add_argument("id")
    sub.add_parser("show-role").add_argument("id")

    sa = sub.add_parser("assign-role")
    sa.add_argument("--user-id")
    sa.add_argument("--role-id")
    sa.add_argument("--manifest", help="YAML file with user_id/role_id")
    sa.add_argument("--replace", action="store_true", help="Recreate the assignment if user or role changed")

    sub.add_parser("read-assignment")
    sub.add_parser("unassign-role")
    sub.add_parser("import-assignment").add_argument("id", help="user_id:role_id")
    sub.add_parser("show-user").add_argument("id")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    if args.cmd in STATEFUL_COMMANDS and not args.state:
        parser.error(f"{args.cmd} requires --state")

    try:
        config = load_settings(base_url=args.api_url, api_key=args.api_key)
    except RuntimeError as e:
        parser.error(str(e))

    provider = build_provider(config)
    ctx = InvocationContext(timeout=args.timeout)
    try:
        operation, kind, resource_id, details = run_command(args, provider, ctx)
    except (ReconcileError, ArchestraError, OSError, ValueError, yaml.YAMLError) as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        audit.safe_log_reconcile_event(
            _operation_for(args.cmd),
            _kind_for(args.cmd),
            getattr(args, "resource_id", None) or getattr(args, "id", None),
            operator=args.operator,
            details={"command": args.cmd, "error": str(e)},
            success=False,
        )
        sys.exit(1)
    finally:
        provider.close()

    audit.safe_log_reconcile_event(
        operation,
        kind,
        resource_id,
        operator=args.operator,
        details=details,
        success=True,
    )


def _operation_for(cmd: str) -> str:
    return {
        "create-role": "create", "assign-role": "create",
        "update-role": "update",
        "delete-role": "delete", "unassign-role": "delete",
        "import-role": "import", "import-assignment": "import",
    }.get(cmd, "read")


def _kind_for(cmd: str) -> str:
    if cmd == "show-user":
        return "user"
    if "assign" in cmd:
        return ASSIGNMENT_KIND
    return ROLE_KIND


if __name__ == "__main__":
    main()
