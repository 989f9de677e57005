"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from archestra_rbac.core.gateway.client import DEFAULT_BASE_URL, REQUEST_TIMEOUT

DEMO_API_KEY = "archestra-demo-api-key"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    # Priority 1: Read from /run/secrets
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    # Priority 2: Fallback to environment variable
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_flag(name: str, default: bool = False) -> bool:
    return os.environ.get(name, str(default)).strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise RuntimeError(f"Environment variable {name} must be positive, got {raw!r}")
    return value


@dataclass
class GatewayConfig:
    """Remote API and audit configuration."""
    # Mode
    demo_mode: bool = False

    # Archestra API
    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    request_timeout: float = REQUEST_TIMEOUT

    # Reconciliation
    verify_assignments: bool = False

    # Audit
    audit_log_signing_key: str = ""

    @property
    def api_key_resolved(self) -> str:
        """Get the API key with smart fallback.

        Priority:
        1. Configured value in api_key
        2. Docker secrets: /run/secrets/archestra_api_key
        3. Environment variable: ARCHESTRA_API_KEY
        4. Demo mode: fixed demo key

        Returns:
            API key string

        Raises:
            ValueError: If no key is found outside demo mode
        """
        if self.api_key:
            return self.api_key

        secret = _load_secret_from_file("archestra_api_key", "ARCHESTRA_API_KEY")
        if secret:
            return secret

        if self.demo_mode:
            return DEMO_API_KEY

        raise ValueError(
            "ARCHESTRA_API_KEY not found. "
            "Set DEMO_MODE=true or provide the key via Docker secrets or environment variable."
        )


def load_settings(base_url: Optional[str] = None, api_key: Optional[str] = None) -> GatewayConfig:
    """Load settings from environment and /run/secrets.

    Args:
        base_url: Explicit API URL, overrides ARCHESTRA_BASE_URL
        api_key: Explicit API key, overrides secrets and ARCHESTRA_API_KEY

    Raises:
        RuntimeError: If the API key is missing outside demo mode, or a numeric
            variable is malformed
    """
    demo_mode = _env_flag("DEMO_MODE")

    resolved_key = api_key or _load_secret_from_file("archestra_api_key", "ARCHESTRA_API_KEY")
    if not resolved_key:
        if not demo_mode:
            raise RuntimeError("ARCHESTRA_API_KEY not found in /run/secrets or environment")
        print("[demo-mode] Using demo ARCHESTRA_API_KEY")
        resolved_key = DEMO_API_KEY

    audit_log_signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY") or ""
    if audit_log_signing_key:
        os.environ["AUDIT_LOG_SIGNING_KEY"] = audit_log_signing_key

    return GatewayConfig(
        demo_mode=demo_mode,
        base_url=(base_url or os.environ.get("ARCHESTRA_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        api_key=resolved_key,
        request_timeout=_env_float("ARCHESTRA_REQUEST_TIMEOUT", REQUEST_TIMEOUT),
        verify_assignments=_env_flag("ARCHESTRA_VERIFY_ASSIGNMENTS"),
        audit_log_signing_key=audit_log_signing_key,
    )
