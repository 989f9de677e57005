from archestra_rbac.core.drift import assignment_present, diff_role, role_state_from_remote
from archestra_rbac.core.models import Role
from archestra_rbac.core.state import RoleState


def test_remote_projection_copies_every_field():
    role = Role(id="r1", name="Reader", description=None, permissions=("agents:read",))
    assert role_state_from_remote(role) == RoleState(id="r1", name="Reader", description=None, permissions=("agents:read",))


def test_no_diff_for_identical_state():
    state = RoleState(id="r1", name="Reader", permissions=("agents:read",))
    assert diff_role(state, state) == {}


def test_diff_reports_changed_fields():
    prior = RoleState(id="r1", name="Reader", description="old", permissions=("agents:read",))
    observed = RoleState(id="r1", name="Reader", description=None, permissions=("agents:read", "agents:write"))

    assert diff_role(prior, observed) == {
        "description": ("old", None),
        "permissions": (("agents:read",), ("agents:read", "agents:write")),
    }


def test_permission_order_is_significant():
    prior = RoleState(id="r1", name="Reader", permissions=("a", "b"))
    observed = RoleState(id="r1", name="Reader", permissions=("b", "a"))
    assert "permissions" in diff_role(prior, observed)


def test_assignment_present_matches_exact_id():
    roles = [Role(id="r10", name="x"), Role(id="r2", name="y")]
    assert assignment_present(roles, "r2")
    assert not assignment_present(roles, "r1")
    assert not assignment_present([], "r1")
