"""Audit logging utilities for reconciliation events."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import os
import sys
from pathlib import Path
from typing import Any, Literal

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "reconcile-events.jsonl"


def _get_signing_key() -> bytes:
    """Get the audit signing key from environment (loaded lazily to support Docker secrets)."""
    key_file = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
    if key_file:
        path = Path(key_file)
        if path.exists():
            try:
                return path.read_text(encoding="utf-8").strip().encode("utf-8")
            except OSError:
                pass
    return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")


Operation = Literal["create", "read", "update", "delete", "import"]


def _ensure_audit_dir() -> None:
    """Create audit directory with restricted permissions."""
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    # Canonical JSON representation for signing
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_reconcile_event(
    operation: Operation,
    resource_kind: str,
    resource_id: str | None,
    *,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Log a reconciliation event to the audit trail with timestamp and signature.

    Args:
        operation: Lifecycle operation (create, read, update, delete, import)
        resource_kind: Resource kind (role, user_role_assignment)
        resource_id: Identifier of the affected resource, if known
        operator: Who performed the operation (user or system)
        details: Additional context (attributes, error, outcome)
        success: Whether the operation succeeded
    """
    _ensure_audit_dir()

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "operation": operation,
        "resource_kind": resource_kind,
        "resource_id": resource_id,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    # Append to JSONL file (one JSON object per line)
    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_reconcile_event(
    operation: Operation,
    resource_kind: str,
    resource_id: str | None,
    *,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Log a reconciliation event without ever raising.

    Audit failures must not turn a converged resource into a reported failure,
    so errors are reported on stderr instead of propagated.

    Returns:
        True if event was logged successfully, False if logging failed
    """
    try:
        log_reconcile_event(
            operation,
            resource_kind,
            resource_id,
            operator=operator,
            details=details,
            success=success,
        )
        return True
    except (OSError, TypeError, ValueError) as e:
        print(
            f"[audit] Warning: Failed to log {operation} event for {resource_kind} {resource_id}: {e}",
            file=sys.stderr,
        )
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, 0

    total = 0
    valid = 0

    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
                stored_sig = event.pop("signature", "")
                if not stored_sig:
                    continue
                computed_sig = _sign_event(event)
                if hmac.compare_digest(stored_sig, computed_sig):
                    valid += 1
            except (json.JSONDecodeError, KeyError):
                continue

    return total, valid


if __name__ == "__main__":
    total, valid = verify_audit_log()
    print(f"Audit log: {valid}/{total} events with valid signatures")
    sys.exit(0 if total == valid else 1)
