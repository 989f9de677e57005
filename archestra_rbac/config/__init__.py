"""Configuration module for archestra-rbac."""
from .settings import GatewayConfig, load_settings

__all__ = ["GatewayConfig", "load_settings"]
