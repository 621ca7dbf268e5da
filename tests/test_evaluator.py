from dataclasses import dataclass
from typing import Optional

import pytest

from soluly.modules.authorization.evaluator import (
    accessible_resources,
    can,
    can_all,
    can_any,
    can_on_record,
    can_settings,
    can_view_own_only,
    owner_id_of,
    ownership_field,
    visible_records,
)
from soluly.modules.permissions.models import Action, Resource
from tests.factories import make_actor, matrix_json, template_json


@dataclass
class Ticket:
    id: int
    assignee_id: Optional[str]
    project_id: Optional[str] = None


def test_unknown_resource_or_action_is_denied() -> None:
    actor = make_actor(permissions=template_json("admin"))
    assert not can(actor, "invoices", "view")
    assert not can(actor, "tickets", "archive")
    assert not can(actor, "dashboard", "delete")
    assert not can(actor, "settings", "create")


def test_actor_without_role_is_denied_everything() -> None:
    actor = make_actor(role=None)
    for resource in Resource:
        for action in Action:
            assert not can(actor, resource, action)
    assert accessible_resources(actor) == []


def test_missing_actor_is_denied() -> None:
    assert not can(None, Resource.TICKETS, Action.VIEW)
    assert not can_on_record(None, Resource.TICKETS, Action.VIEW, {"id": 1})
    assert not can_settings(None, Action.VIEW)


def test_can_accepts_strings_and_enums() -> None:
    actor = make_actor(permissions=matrix_json(crm={"view": True}))
    assert can(actor, "crm", "view")
    assert can(actor, Resource.CRM, Action.VIEW)
    assert not can(actor, Resource.CRM, Action.EDIT)


def test_own_only_grants_the_action_class() -> None:
    actor = make_actor(permissions=matrix_json(tickets={"view": "own"}))
    assert can(actor, Resource.TICKETS, Action.VIEW)
    assert can_view_own_only(actor, Resource.TICKETS)
    assert not can_view_own_only(actor, Resource.CRM)


@pytest.mark.parametrize(
    "owner, expected",
    [("member-1", True), ("member-2", False), (None, False)],
)
def test_own_only_record_check_matches_owner(owner, expected) -> None:
    actor = make_actor(permissions=matrix_json(features={"edit": "own"}))
    record = {"id": "f-1", "created_by": owner}
    assert can_on_record(actor, Resource.FEATURES, Action.EDIT, record) is expected


def test_allowed_ignores_ownership() -> None:
    actor = make_actor(permissions=matrix_json(features={"edit": True}))
    assert can_on_record(actor, Resource.FEATURES, Action.EDIT, {"created_by": "someone-else"})


def test_denied_never_passes_on_record() -> None:
    actor = make_actor(member_id="member-1", permissions=matrix_json(tickets={"view": True}))
    assert not can_on_record(actor, Resource.TICKETS, Action.DELETE, {"assignee_id": "member-1"})


def test_record_check_is_conjunctive_with_scope() -> None:
    actor = make_actor(permissions=matrix_json(tickets={"edit": True}), project_scope=["P1"])
    assert can_on_record(actor, Resource.TICKETS, Action.EDIT, {"project_id": "P1"})
    assert not can_on_record(actor, Resource.TICKETS, Action.EDIT, {"project_id": "P2"})


def test_record_with_unreadable_projects_is_denied() -> None:
    actor = make_actor(permissions=matrix_json(tickets={"view": True}), project_scope=["P1"])
    foreign = {"id": 1, "projects": [{"project_id": "P2"}]}
    unnamed = {"id": 2, "projects": [{"name": "Other"}]}

    assert not can_on_record(actor, Resource.TICKETS, Action.VIEW, foreign)
    assert not can_on_record(actor, Resource.TICKETS, Action.VIEW, unnamed)
    assert visible_records(actor, Resource.TICKETS, [foreign, unnamed]) == []
    assert can_on_record(actor, Resource.TICKETS, Action.VIEW, {"id": 3, "projects": [{"id": "P1"}]})

def test_missing_record_is_denied() -> None:
    actor = make_actor(permissions=template_json("admin"))
    assert not can_on_record(actor, Resource.TICKETS, Action.VIEW, None)


def test_ownership_fields() -> None:
    assert ownership_field(Resource.TICKETS) == "assignee_id"
    assert ownership_field("team") == "id"
    assert ownership_field(Resource.FEEDBACK) == "created_by"
    assert owner_id_of(Resource.CRM, {"owner_id": "member-9"}) == "member-9"
    assert owner_id_of(Resource.TICKETS, Ticket(id=1, assignee_id="member-3")) == "member-3"


def test_team_own_means_own_profile() -> None:
    actor = make_actor(permissions=matrix_json(team={"view": True, "edit": "own"}))
    assert can_on_record(actor, Resource.TEAM, Action.EDIT, {"id": "member-1"})
    assert not can_on_record(actor, Resource.TEAM, Action.EDIT, {"id": "member-2"})


def test_settings_require_allowed() -> None:
    actor = make_actor(permissions=matrix_json(settings={"view": True, "manage_roles": "own"}))
    assert can_settings(actor, Action.VIEW)
    assert can_settings(actor, "view")
    assert not can_settings(actor, Action.MANAGE_ROLES)
    assert not can_settings(actor, Action.MANAGE_USERS)


def test_can_any_and_can_all() -> None:
    actor = make_actor(permissions=matrix_json(crm={"view": True}, emails={"view": "own"}))
    checks = [(Resource.CRM, Action.VIEW), (Resource.EMAILS, Action.VIEW)]
    assert can_all(actor, checks)
    assert can_any(actor, checks + [(Resource.FORMS, Action.VIEW)])
    assert not can_all(actor, checks + [(Resource.FORMS, Action.VIEW)])
    assert not can_any(actor, [])
    assert can_all(actor, [])


def test_accessible_resources_excludes_settings() -> None:
    actor = make_actor(permissions=matrix_json(
        dashboard={"view": True},
        tickets={"view": "own"},
        settings={"view": True},
    ))
    assert accessible_resources(actor) == [Resource.DASHBOARD, Resource.TICKETS]


def test_own_ticket_list_shows_only_assigned_tickets() -> None:
    actor = make_actor(
        member_id="member-1",
        permissions=matrix_json(tickets={"view": "own", "create": True, "edit": "own", "delete": False}),
        project_scope=None,
    )
    tickets = [
        {"id": 1, "assignee_id": "member-1", "project_id": None},
        {"id": 2, "assignee_id": "other", "project_id": None},
    ]
    assert [t["id"] for t in visible_records(actor, Resource.TICKETS, tickets)] == [1]


def test_scoped_ticket_list_keeps_global_tickets() -> None:
    actor = make_actor(permissions=matrix_json(tickets={"view": True}), project_scope=["P1"])
    tickets = [
        Ticket(id=1, assignee_id=None, project_id="P1"),
        Ticket(id=2, assignee_id=None, project_id="P2"),
        Ticket(id=3, assignee_id=None, project_id=None),
    ]
    assert [t.id for t in visible_records(actor, Resource.TICKETS, tickets)] == [1, 3]


def test_visible_records_without_view_is_empty() -> None:
    actor = make_actor(permissions=matrix_json(tickets={"create": True}))
    assert visible_records(actor, Resource.TICKETS, [{"id": 1}]) == []
    assert visible_records(actor, Resource.TICKETS, None) == []
