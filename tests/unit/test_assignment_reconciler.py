import pytest

from archestra_rbac.core.context import InvocationContext
from archestra_rbac.core.exceptions import (
    GatewayError,
    InvalidComponent,
    InvalidDesiredState,
    MalformedIdentifier,
    OperationCancelled,
    ProtocolError,
    ReplacementRequired,
)
from archestra_rbac.core.gateway import NotFound, Ok, TransportError, Unexpected
from archestra_rbac.core.reconciler import AssignmentReconciler
from archestra_rbac.core.state import AssignmentState


@pytest.fixture()
def api(fake_api):
    fake_api.add_user("u1")
    fake_api.add_role("r1", "Reader", permissions=("agents:read",))
    fake_api.add_role("r2", "Writer", permissions=("agents:write",))
    return fake_api


@pytest.fixture()
def reconciler(api):
    return AssignmentReconciler(api)


# ─────────────────────────────────────────────────────────────────────────────
# Create
# ─────────────────────────────────────────────────────────────────────────────
def test_create_records_composite_id(reconciler, api):
    state = reconciler.create(AssignmentState(user_id="u1", role_id="r1"))

    assert state == AssignmentState(id="u1:r1", user_id="u1", role_id="r1")
    assert api.user_roles["u1"] == ["r1"]


def test_create_commits_on_any_2xx_without_payload(reconciler, api):
    api.override("create_assignment", Ok(payload=None, status=204))

    state = reconciler.create(AssignmentState(user_id="u1", role_id="r1"))

    assert state.id == "u1:r1"
    assert api.call_names() == ["create_assignment"]


def test_create_rejected_is_protocol_error(reconciler):
    with pytest.raises(ProtocolError) as excinfo:
        reconciler.create(AssignmentState(user_id="ghost", role_id="r1"))

    assert excinfo.value.status == 404
    assert "user not found" in excinfo.value.body


@pytest.mark.parametrize(
    "user_id,role_id",
    [("", "r1"), ("u1", "")],
)
def test_create_requires_both_ids(reconciler, api, user_id, role_id):
    with pytest.raises(InvalidDesiredState):
        reconciler.create(AssignmentState(user_id=user_id, role_id=role_id))
    assert api.calls == []


def test_create_rejects_separator_before_network(reconciler, api):
    with pytest.raises(InvalidComponent) as excinfo:
        reconciler.create(AssignmentState(user_id="u:1", role_id="r1"))

    assert excinfo.value.operation == "create"
    assert excinfo.value.resource_kind == "user_role_assignment"
    assert api.calls == []


def test_create_transport_failure_records_nothing(reconciler, api):
    api.override("create_assignment", TransportError("connection reset"))

    with pytest.raises(GatewayError):
        reconciler.create(AssignmentState(user_id="u1", role_id="r1"))


def test_create_with_verification_checks_listing(api):
    reconciler = AssignmentReconciler(api, verify_after_create=True)

    state = reconciler.create(AssignmentState(user_id="u1", role_id="r1"))

    assert state.id == "u1:r1"
    assert api.call_names() == ["create_assignment", "list_roles_for_user"]


def test_create_with_verification_fails_when_not_listed(api):
    reconciler = AssignmentReconciler(api, verify_after_create=True)
    api.override("create_assignment", Ok(status=200))

    with pytest.raises(ProtocolError, match="not listed"):
        reconciler.create(AssignmentState(user_id="u1", role_id="r1"))


# ─────────────────────────────────────────────────────────────────────────────
# Read
# ─────────────────────────────────────────────────────────────────────────────
def test_read_returns_prior_when_listed(reconciler):
    created = reconciler.create(AssignmentState(user_id="u1", role_id="r1"))
    assert reconciler.read(created) == created


def test_read_uses_stored_id_not_fields(reconciler, api):
    api.user_roles["u1"].append("r2")
    prior = AssignmentState(id="u1:r2", user_id="stale", role_id="stale")

    assert reconciler.read(prior) is prior
    assert api.calls == [("list_roles_for_user", "u1")]


def test_read_absent_role_purges_state(reconciler, api):
    api.user_roles["u1"].append("r2")
    assert reconciler.read(AssignmentState(id="u1:r1", user_id="u1", role_id="r1")) is None


def test_read_unknown_user_purges_state(reconciler):
    assert reconciler.read(AssignmentState(id="ghost:r1", user_id="ghost", role_id="r1")) is None


def test_read_matches_role_id_exactly(reconciler, api):
    api.add_role("r10", "Other")
    api.user_roles["u1"].append("r10")
    assert reconciler.read(AssignmentState(id="u1:r1", user_id="u1", role_id="r1")) is None


def test_read_malformed_id_fails_without_network(reconciler, api):
    with pytest.raises(MalformedIdentifier) as excinfo:
        reconciler.read(AssignmentState(id="u1", user_id="u1", role_id="r1"))

    assert excinfo.value.operation == "read"
    assert api.calls == []


def test_read_unexpected_status_is_protocol_error(reconciler, api):
    api.override("list_roles_for_user", Unexpected(status=502, body="bad gateway"))

    with pytest.raises(ProtocolError) as excinfo:
        reconciler.read(AssignmentState(id="u1:r1", user_id="u1", role_id="r1"))
    assert excinfo.value.status == 502


# ─────────────────────────────────────────────────────────────────────────────
# Update / replacement
# ─────────────────────────────────────────────────────────────────────────────
def test_update_without_changes_returns_prior(reconciler):
    prior = AssignmentState(id="u1:r1", user_id="u1", role_id="r1")
    assert reconciler.update(AssignmentState(user_id="u1", role_id="r1"), prior) is prior


@pytest.mark.parametrize(
    "desired,changed",
    [
        (AssignmentState(user_id="u2", role_id="r1"), ("user_id",)),
        (AssignmentState(user_id="u1", role_id="r2"), ("role_id",)),
        (AssignmentState(user_id="u2", role_id="r2"), ("user_id", "role_id")),
    ],
)
def test_update_with_changed_ids_requires_replacement(reconciler, api, desired, changed):
    prior = AssignmentState(id="u1:r1", user_id="u1", role_id="r1")

    assert reconciler.requires_replacement(desired, prior) == changed
    with pytest.raises(ReplacementRequired) as excinfo:
        reconciler.update(desired, prior)

    assert excinfo.value.changed == changed
    assert api.calls == []


# ─────────────────────────────────────────────────────────────────────────────
# Delete
# ─────────────────────────────────────────────────────────────────────────────
def test_delete_then_read_reports_absent(reconciler, api):
    created = reconciler.create(AssignmentState(user_id="u1", role_id="r1"))

    reconciler.delete(created)

    assert api.user_roles["u1"] == []
    assert reconciler.read(created) is None


def test_delete_is_idempotent(reconciler):
    prior = AssignmentState(id="u1:r1", user_id="u1", role_id="r1")
    reconciler.delete(prior)
    reconciler.delete(prior)


def test_delete_other_status_fails(reconciler, api):
    api.override("delete_assignment", Unexpected(status=403, body="forbidden"))

    with pytest.raises(ProtocolError) as excinfo:
        reconciler.delete(AssignmentState(id="u1:r1", user_id="u1", role_id="r1"))
    assert excinfo.value.status == 403


def test_delete_malformed_id_fails_without_network(reconciler, api):
    with pytest.raises(MalformedIdentifier):
        reconciler.delete(AssignmentState(id="u1:r1:extra", user_id="u1", role_id="r1"))
    assert api.calls == []


# ─────────────────────────────────────────────────────────────────────────────
# Import
# ─────────────────────────────────────────────────────────────────────────────
def test_import_decodes_without_network(reconciler, api):
    state = reconciler.import_state("u1:r1")

    assert state == AssignmentState(id="u1:r1", user_id="u1", role_id="r1")
    assert api.calls == []


@pytest.mark.parametrize("identifier", ["u1", "u1:r1:extra", ":r1", "u1:"])
def test_import_malformed_identifier(reconciler, api, identifier):
    with pytest.raises(MalformedIdentifier) as excinfo:
        reconciler.import_state(identifier)

    assert excinfo.value.operation == "import"
    assert "user_id:role_id" in str(excinfo.value)
    assert api.calls == []


def test_import_of_missing_assignment_is_purged_on_read(reconciler):
    state = reconciler.import_state("u1:r2")
    assert reconciler.read(state) is None


# ─────────────────────────────────────────────────────────────────────────────
# Cancellation
# ─────────────────────────────────────────────────────────────────────────────
def test_cancelled_context_blocks_create(reconciler, api):
    ctx = InvocationContext()
    ctx.cancel()

    with pytest.raises(OperationCancelled):
        reconciler.create(AssignmentState(user_id="u1", role_id="r1"), ctx=ctx)
    assert api.calls == []
    assert api.user_roles["u1"] == []


def test_cancel_during_read_discards_result(reconciler, api):
    ctx = InvocationContext()
    original = api.list_roles_for_user

    def cancel_mid_flight(*args, **kwargs):
        result = original(*args, **kwargs)
        ctx.cancel()
        return result

    api.list_roles_for_user = cancel_mid_flight
    api.user_roles["u1"].append("r1")

    with pytest.raises(OperationCancelled):
        reconciler.read(AssignmentState(id="u1:r1", user_id="u1", role_id="r1"), ctx=ctx)
