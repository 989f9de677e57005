"""Pytest shared fixtures: in-memory Archestra API and mocked HTTP sessions."""
import itertools
import json
import pathlib
import sys
from typing import Optional
from unittest.mock import MagicMock
from urllib.parse import urlparse

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from archestra_rbac.core.gateway.results import NotFound, Ok, Unexpected
from archestra_rbac.core.models import Role, User

LOOPBACK_HOSTS = {"127.0.0.1", "localhost"}


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from reaching a live Archestra API.

    Requests to loopback servers started by the tests themselves are allowed.
    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    real_request = requests.Session.request

    def _refuse(self, method, url, *args, **kwargs):
        if urlparse(url).hostname in LOOPBACK_HOSTS:
            return real_request(self, method, url, *args, **kwargs)
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests.Session, "request", _refuse)


# ─────────────────────────────────────────────────────────────────────────────
# Mocked HTTP session for client/service tests
# ─────────────────────────────────────────────────────────────────────────────
def make_response(status_code: int = 200, payload=None, text: Optional[str] = None) -> MagicMock:
    """Build a mock ``requests.Response``; ``text`` without payload makes ``json()`` fail."""
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    if text is None:
        text = json.dumps(payload) if payload is not None else ""
    resp.text = text
    if payload is not None:
        resp.json.return_value = payload
    else:
        resp.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    return resp


@pytest.fixture()
def mock_session():
    """Mock ``requests.Session``; set ``request.return_value`` or ``request.side_effect``."""
    return MagicMock(spec=requests.Session)


@pytest.fixture()
def respond():
    """Factory for mock HTTP responses: ``respond(201, {...})``."""
    return make_response


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Archestra API (implements the reconciler gateway ports)
# ─────────────────────────────────────────────────────────────────────────────
class FakeArchestra:
    """Minimal stand-in for the role and user endpoints.

    ``overrides`` maps a method name to a list of results or exceptions that
    are returned/raised instead of the in-memory behaviour, one per call.
    """

    def __init__(self):
        self.roles: dict[str, Role] = {}
        self.users: dict[str, User] = {}
        self.user_roles: dict[str, list[str]] = {}
        self.calls: list[tuple] = []
        self.overrides: dict[str, list] = {}
        self._ids = itertools.count(1)

    # helpers ---------------------------------------------------------------
    def add_user(self, user_id: str, name: str = "Test User") -> User:
        user = User(id=user_id, name=name, email=f"{user_id}@example.com")
        self.users[user_id] = user
        self.user_roles.setdefault(user_id, [])
        return user

    def add_role(self, role_id: str, name: str, permissions=(), description=None) -> Role:
        role = Role(id=role_id, name=name, description=description, permissions=tuple(permissions))
        self.roles[role_id] = role
        return role

    def override(self, method: str, *results) -> None:
        self.overrides.setdefault(method, []).extend(results)

    def _record(self, method: str, *args):
        self.calls.append((method,) + args)
        queued = self.overrides.get(method)
        if queued:
            result = queued.pop(0)
            if isinstance(result, BaseException):
                raise result
            return result
        return None

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    # RoleGateway -----------------------------------------------------------
    def fetch_role(self, role_id, ctx=None):
        forced = self._record("fetch_role", role_id)
        if forced is not None:
            return forced
        role = self.roles.get(role_id)
        return Ok(payload=role) if role else NotFound()

    def create_role(self, name, permissions, description=None, ctx=None):
        forced = self._record("create_role", name, tuple(permissions), description)
        if forced is not None:
            return forced
        role_id = f"00000000-0000-4000-8000-{next(self._ids):012d}"
        role = self.add_role(role_id, name, permissions, description)
        return Ok(payload=role, status=201)

    def update_role(self, role_id, name, permissions, description=None, ctx=None):
        forced = self._record("update_role", role_id, name, tuple(permissions), description)
        if forced is not None:
            return forced
        current = self.roles.get(role_id)
        if current is None:
            return NotFound()
        role = self.add_role(
            role_id,
            name,
            permissions,
            description if description is not None else current.description,
        )
        return Ok(payload=role)

    def delete_role(self, role_id, ctx=None):
        forced = self._record("delete_role", role_id)
        if forced is not None:
            return forced
        if self.roles.pop(role_id, None) is None:
            return NotFound()
        for assigned in self.user_roles.values():
            if role_id in assigned:
                assigned.remove(role_id)
        return Ok(status=204)

    # AssignmentGateway -----------------------------------------------------
    def list_roles_for_user(self, user_id, ctx=None):
        forced = self._record("list_roles_for_user", user_id)
        if forced is not None:
            return forced
        if user_id not in self.users:
            return NotFound()
        return Ok(payload=[self.roles[r] for r in self.user_roles[user_id] if r in self.roles])

    def create_assignment(self, user_id, role_id, ctx=None):
        forced = self._record("create_assignment", user_id, role_id)
        if forced is not None:
            return forced
        if user_id not in self.users:
            return Unexpected(status=404, body='{"error":"user not found"}')
        self.user_roles[user_id].append(role_id)
        return Ok(status=200)

    def delete_assignment(self, user_id, role_id, ctx=None):
        forced = self._record("delete_assignment", user_id, role_id)
        if forced is not None:
            return forced
        assigned = self.user_roles.get(user_id, [])
        if role_id not in assigned:
            return NotFound()
        assigned.remove(role_id)
        return Ok(status=204)

    # UserGateway -----------------------------------------------------------
    def fetch_user(self, user_id, ctx=None):
        forced = self._record("fetch_user", user_id)
        if forced is not None:
            return forced
        user = self.users.get(user_id)
        return Ok(payload=user) if user else NotFound()


@pytest.fixture()
def fake_api():
    return FakeArchestra()


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: test talks to a live Archestra API")
