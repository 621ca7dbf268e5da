import pytest

from soluly.config.permissions_config import ROLE_TEMPLATES
from soluly.core.exceptions import (
    InvalidPermissionValue,
    MatrixValidationError,
    MissingAction,
    MissingResource,
    UnknownKey,
    ValidationError,
)
from soluly.modules.permissions.matrix import (
    coerce_matrix,
    default_matrix,
    matrix_to_json,
    merge_template,
    permission_for,
    validate_matrix,
)
from soluly.modules.permissions.models import Action, PermissionValue, Resource, SCHEMA
from tests.factories import deny_all_json, matrix_json, template_json


def test_schema_shape() -> None:
    assert SCHEMA[Resource.DASHBOARD] == frozenset({Action.VIEW})
    assert SCHEMA[Resource.SETTINGS] == frozenset(
        {Action.VIEW, Action.MANAGE_ORG, Action.MANAGE_USERS, Action.MANAGE_ROLES}
    )
    for resource in Resource:
        if resource not in (Resource.DASHBOARD, Resource.SETTINGS):
            assert SCHEMA[resource] == frozenset({Action.VIEW, Action.CREATE, Action.EDIT, Action.DELETE})


def test_default_matrix_is_all_denied_and_complete() -> None:
    matrix = default_matrix()
    assert set(matrix) == set(Resource)
    for resource, actions in SCHEMA.items():
        assert set(matrix[resource]) == set(actions)
        assert all(value is PermissionValue.DENIED for value in matrix[resource].values())


def test_validate_accepts_full_matrix() -> None:
    matrix = validate_matrix(matrix_json(tickets={"view": "own", "create": True}))
    assert matrix[Resource.TICKETS][Action.VIEW] is PermissionValue.OWN_ONLY
    assert matrix[Resource.TICKETS][Action.CREATE] is PermissionValue.ALLOWED
    assert matrix[Resource.TICKETS][Action.DELETE] is PermissionValue.DENIED


def test_validate_missing_resource() -> None:
    raw = deny_all_json()
    del raw["forms"]
    with pytest.raises(MissingResource) as exc_info:
        validate_matrix(raw)
    assert exc_info.value.resource == "forms"


def test_validate_missing_action() -> None:
    raw = deny_all_json()
    del raw["settings"]["manage_roles"]
    with pytest.raises(MissingAction) as exc_info:
        validate_matrix(raw)
    assert exc_info.value.action == "manage_roles"


def test_validate_unknown_resource() -> None:
    raw = deny_all_json()
    raw["invoices"] = {"view": True}
    with pytest.raises(UnknownKey):
        validate_matrix(raw)


def test_validate_unknown_action_for_resource() -> None:
    raw = deny_all_json()
    raw["dashboard"]["edit"] = True
    with pytest.raises(UnknownKey):
        validate_matrix(raw)


def test_validate_rejects_bad_value() -> None:
    raw = matrix_json(crm={"view": "maybe"})
    with pytest.raises(InvalidPermissionValue):
        validate_matrix(raw)


def test_validation_errors_share_a_base() -> None:
    with pytest.raises(ValidationError):
        validate_matrix({})
    with pytest.raises(MatrixValidationError):
        validate_matrix(["not", "a", "matrix"])


def test_all_templates_are_valid() -> None:
    for key, template in ROLE_TEMPLATES.items():
        validate_matrix(template["permissions"])


def test_contractor_template_is_project_scoped_with_own_edits() -> None:
    contractor = ROLE_TEMPLATES["contractor"]
    assert contractor["project_scope"] == []
    assert contractor["permissions"]["tickets"]["edit"] == "own"
    assert contractor["permissions"]["feedback"]["edit"] == "own"


def test_viewer_template_is_read_only() -> None:
    matrix = validate_matrix(ROLE_TEMPLATES["viewer"]["permissions"])
    for resource, actions in matrix.items():
        for action, value in actions.items():
            expected = PermissionValue.ALLOWED if action is Action.VIEW else PermissionValue.DENIED
            assert value is expected, (resource, action)


def test_merge_template_fully_overwrites_base() -> None:
    base = validate_matrix(template_json("admin"))
    merged = merge_template(base, template_json("feedback_only"))
    assert merged == validate_matrix(template_json("feedback_only"))
    assert merged[Resource.PROJECTS][Action.VIEW] is PermissionValue.DENIED


def test_merge_template_accepts_parsed_template_and_returns_copy() -> None:
    template = validate_matrix(template_json("manager"))
    merged = merge_template(default_matrix(), template)
    assert merged == template
    merged[Resource.CRM][Action.VIEW] = PermissionValue.DENIED
    assert template[Resource.CRM][Action.VIEW] is PermissionValue.ALLOWED


def test_merge_template_rejects_partial_template() -> None:
    with pytest.raises(MissingResource):
        merge_template(default_matrix(), {"dashboard": {"view": True}})


def test_coerce_fills_missing_and_drops_unknown() -> None:
    matrix = coerce_matrix({
        "tickets": {"view": True, "archive": True, "edit": "sometimes"},
        "invoices": {"view": True},
    })
    assert matrix[Resource.TICKETS][Action.VIEW] is PermissionValue.ALLOWED
    assert matrix[Resource.TICKETS][Action.EDIT] is PermissionValue.DENIED
    assert matrix[Resource.FORMS][Action.VIEW] is PermissionValue.DENIED
    assert set(matrix) == set(Resource)


def test_coerce_non_mapping_is_zero_matrix() -> None:
    assert coerce_matrix(None) == default_matrix()
    assert coerce_matrix("admin") == default_matrix()


def test_matrix_to_json_wire_form() -> None:
    raw = matrix_json(emails={"view": "own", "create": True})
    assert matrix_to_json(validate_matrix(raw)) == raw


def test_permission_for_unknown_pairs_are_denied() -> None:
    matrix = validate_matrix(template_json("admin"))
    assert permission_for(matrix, "tickets", "view") is PermissionValue.ALLOWED
    assert permission_for(matrix, "invoices", "view") is PermissionValue.DENIED
    assert permission_for(matrix, "tickets", "archive") is PermissionValue.DENIED
    assert permission_for(matrix, "dashboard", "edit") is PermissionValue.DENIED
    assert permission_for(None, "tickets", "view") is PermissionValue.DENIED
