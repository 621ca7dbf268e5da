"""
Project-scope filter.

A role carries project_scope: None (all projects), [] (no projects) or an
allow-list. Records without any project association are org-wide and always
pass; a record linked to several projects passes if any of them is in scope.
A record whose association cannot be read is excluded, never treated as
org-wide. Apart from project_ids_of_record, none of these functions raise:
a missing actor or malformed scope yields no project access.
"""
import logging
import uuid
from collections.abc import Iterable, Mapping
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from soluly.modules.authorization.models import Actor

logger = logging.getLogger(__name__)

T = TypeVar("T")
ProjectIdsOf = Callable[[Any], Any]


def effective_project_scope(actor: Optional[Actor]) -> Optional[List[str]]:
    """
    Project allow-list that applies to the actor; None means unrestricted.

    Precedence: organization owner, then the member-level override, then the role.
    An actor without a resolved role gets [].
    """
    if actor is None:
        return []
    if actor.is_owner:
        return None
    if actor.allowed_project_ids is not None:
        return list(actor.allowed_project_ids)
    if actor.role is None:
        return []
    scope = actor.role.project_scope
    return None if scope is None else list(scope)


def has_full_project_access(actor: Optional[Actor]) -> bool:
    return actor is not None and effective_project_scope(actor) is None


def allowed_project_ids(actor: Optional[Actor]) -> Optional[List[str]]:
    return effective_project_scope(actor)


def has_project_access(actor: Optional[Actor], project_id: Optional[str]) -> bool:
    """Single-project form of the scope rule. A None project_id is an org-wide record."""
    if actor is None:
        return False
    scope = effective_project_scope(actor)
    if scope is None:
        return True
    if project_id is None:
        return True
    return str(project_id) in scope


class UnreadableProjects(ValueError):
    """A record's project association exists but holds no usable project id."""


def _normalize_project_ids(value: Any) -> List[str]:
    """
    Project ids of an association: None or an empty collection is org-wide.

    Raises UnreadableProjects for rows without a usable "id" and for element
    types that are not ids, so callers exclude the record instead of
    treating it as global.
    """
    if value is None:
        return []
    if isinstance(value, bytes):
        value = value.decode()
    if isinstance(value, str):
        if not value:
            raise UnreadableProjects("empty project id")
        return [value]
    if isinstance(value, bool):
        raise UnreadableProjects(f"unrecognised project reference: {value!r}")
    if isinstance(value, (int, uuid.UUID)):
        return [str(value)]
    if isinstance(value, Mapping):
        project_id = value.get("id")
        if project_id is None or isinstance(project_id, (Mapping, list, tuple, set)):
            raise UnreadableProjects(f"project row without an id: {dict(value)!r}")
        return _normalize_project_ids(project_id)
    if isinstance(value, Iterable):
        ids = []
        for item in value:
            if item is None:
                raise UnreadableProjects("null entry in project list")
            ids.extend(_normalize_project_ids(item))
        return ids
    raise UnreadableProjects(f"unrecognised project reference: {type(value).__name__}")


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def project_ids_of_record(record: Any) -> List[str]:
    """Default project lookup: project_ids, then projects, then project_id. Raises UnreadableProjects."""
    for name in ("project_ids", "projects", "project_id"):
        value = _field(record, name)
        if value is not None:
            return _normalize_project_ids(value)
    return []


def record_in_scope(scope: Optional[Sequence[str]], project_ids: Sequence[str]) -> bool:
    if scope is None:
        return True
    if not project_ids:
        return True
    allowed = set(scope)
    return any(project_id in allowed for project_id in project_ids)


def filter_by_scope(
    actor: Optional[Actor],
    records: Optional[Iterable[T]],
    project_ids_of: Optional[ProjectIdsOf] = None,
) -> List[T]:
    """Restrict records to the actor's project scope."""
    if not records:
        return []
    records = list(records)
    if actor is None:
        return []
    scope = effective_project_scope(actor)
    if scope is None:
        return records

    lookup = project_ids_of or project_ids_of_record
    visible = []
    for record in records:
        try:
            project_ids = _normalize_project_ids(lookup(record))
        except (KeyError, AttributeError, TypeError, UnreadableProjects) as e:
            logger.debug(f"Excluding record with unreadable project association: {e}")
            continue
        if record_in_scope(scope, project_ids):
            visible.append(record)
    return visible


def eligible_recipients(
    actors: Iterable[Actor],
    project_ids: Optional[Sequence[str]] = None,
    exclude_member_id: Optional[str] = None,
) -> List[Actor]:
    """
    Notification fan-out: members who may see an event on the given projects.

    No project_ids means an org-wide event and every member is eligible.
    """
    project_ids = [str(p) for p in (project_ids or [])]
    recipients = []
    for actor in actors:
        if exclude_member_id and actor.member_id == exclude_member_id:
            continue
        scope = effective_project_scope(actor)
        if not project_ids or scope is None or any(p in scope for p in project_ids):
            recipients.append(actor)
    return recipients
