import pytest

from soluly.modules.authorization.scope import (
    allowed_project_ids,
    effective_project_scope,
    eligible_recipients,
    filter_by_scope,
    has_full_project_access,
    has_project_access,
    project_ids_of_record,
    UnreadableProjects,
)
from tests.factories import make_actor


def test_empty_records_are_empty_for_any_actor() -> None:
    for actor in (None, make_actor(), make_actor(project_scope=None), make_actor(is_owner=True)):
        assert filter_by_scope(actor, []) == []
        assert filter_by_scope(actor, None) == []


def test_unrestricted_scope_returns_everything() -> None:
    actor = make_actor(project_scope=None)
    records = [{"project_id": "P1"}, {"project_id": "P2"}, {"project_id": None}]
    assert filter_by_scope(actor, records) == records
    assert has_full_project_access(actor)
    assert allowed_project_ids(actor) is None


def test_empty_scope_keeps_global_records() -> None:
    actor = make_actor(project_scope=[])
    records = [{"id": 1}, {"id": 2, "project_id": None}, {"id": 3, "project_ids": []}]
    assert filter_by_scope(actor, records) == records


def test_empty_scope_drops_project_records() -> None:
    actor = make_actor(project_scope=[])
    records = [{"id": 1, "project_id": "P1"}, {"id": 2}]
    assert filter_by_scope(actor, records) == [{"id": 2}]
    assert not has_full_project_access(actor)
    assert allowed_project_ids(actor) == []


def test_multi_project_record_uses_or() -> None:
    record = {"id": 1, "project_ids": ["P1", "P2"]}
    assert filter_by_scope(make_actor(project_scope=["P2"]), [record]) == [record]
    assert filter_by_scope(make_actor(project_scope=["P3"]), [record]) == []


def test_custom_project_lookup() -> None:
    actor = make_actor(project_scope=["P1"])
    records = [
        {"id": 1, "links": [{"project": {"id": "P1"}}]},
        {"id": 2, "links": [{"project": {"id": "P9"}}]},
        {"id": 3, "links": []},
    ]
    result = filter_by_scope(
        actor, records, lambda r: [link["project"] for link in r["links"]]
    )
    assert [r["id"] for r in result] == [1, 3]


def test_unreadable_project_association_is_excluded() -> None:
    actor = make_actor(project_scope=["P1"])
    records = [{"id": 1, "project_id": "P1"}, {"id": 2}]
    assert filter_by_scope(actor, records, lambda r: r["project_id"]) == [{"id": 1, "project_id": "P1"}]


def test_project_rows_without_an_id_are_excluded() -> None:
    actor = make_actor(project_scope=["P1"])
    records = [
        {"id": 1, "projects": [{"project_id": "P2"}]},
        {"id": 2, "projects": [{"name": "Other"}]},
        {"id": 3, "projects": [{"id": None}]},
        {"id": 4, "projects": [{"id": "P1"}, {"id": None}]},
        {"id": 5, "projects": [object()]},
        {"id": 6, "project_id": ""},
    ]
    assert filter_by_scope(actor, records) == []
    assert filter_by_scope(make_actor(project_scope=None), records) == records


def test_only_empty_associations_are_org_wide() -> None:
    actor = make_actor(project_scope=["P1"])
    records = [{"id": 1, "projects": []}, {"id": 2, "projects": None}, {"id": 3, "project_ids": []}]
    assert filter_by_scope(actor, records) == records


@pytest.mark.parametrize("record", [
    {"projects": [{"project_id": "P2"}]},
    {"projects": [{"id": {"id": "P1"}}]},
    {"project_ids": [True]},
    {"project_ids": ["P1", None]},
])
def test_project_ids_of_unreadable_record(record) -> None:
    with pytest.raises(UnreadableProjects):
        project_ids_of_record(record)


def test_project_ids_of_record_shapes() -> None:
    assert project_ids_of_record({"project_id": "P1"}) == ["P1"]
    assert project_ids_of_record({"project_ids": ["P1", "P2"]}) == ["P1", "P2"]
    assert project_ids_of_record({"projects": [{"id": "P3"}, {"id": "P4", "name": "Mobile"}]}) == ["P3", "P4"]
    assert project_ids_of_record({"projects": []}) == []
    assert project_ids_of_record({"title": "no project"}) == []


def test_owner_is_unrestricted_regardless_of_role() -> None:
    actor = make_actor(is_owner=True, project_scope=[], allowed_project_ids=["P1"])
    assert effective_project_scope(actor) is None
    assert has_project_access(actor, "P7")


def test_member_override_beats_role_scope() -> None:
    actor = make_actor(project_scope=None, allowed_project_ids=["P1"])
    assert effective_project_scope(actor) == ["P1"]
    assert has_project_access(actor, "P1")
    assert not has_project_access(actor, "P2")

    widened = make_actor(project_scope=[], allowed_project_ids=["P2"])
    assert has_project_access(widened, "P2")


def test_missing_actor_or_role_has_no_project_access() -> None:
    assert not has_project_access(None, "P1")
    assert filter_by_scope(None, [{"id": 1}]) == []
    assert effective_project_scope(make_actor(role=None)) == []
    assert not has_full_project_access(None)


def test_project_access_for_global_record() -> None:
    assert has_project_access(make_actor(project_scope=[]), None)


def test_eligible_recipients() -> None:
    everyone = make_actor(member_id="m-all", project_scope=None)
    p1 = make_actor(member_id="m-p1", project_scope=["P1"])
    nobody = make_actor(member_id="m-none", project_scope=[])
    actors = [everyone, p1, nobody]

    assert [a.member_id for a in eligible_recipients(actors, ["P1"])] == ["m-all", "m-p1"]
    assert [a.member_id for a in eligible_recipients(actors, ["P2"])] == ["m-all"]
    assert [a.member_id for a in eligible_recipients(actors)] == ["m-all", "m-p1", "m-none"]
    assert [a.member_id for a in eligible_recipients(actors, ["P1"], exclude_member_id="m-all")] == ["m-p1"]
