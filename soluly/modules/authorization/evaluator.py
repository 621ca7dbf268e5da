"""
Authorization evaluator: the single decision point for resource/action checks.

All functions are pure and synchronous over a resolved Actor snapshot and
never raise. A missing actor, a missing role, an unknown resource or action
string, or an unreadable record all deny.

Tenant isolation is NOT checked here. Callers must only pass records that
already belong to actor.organization_id (every service in this package
filters its queries by organization_id before evaluating).
"""
import logging
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Tuple

from soluly.config.permissions_config import OWNERSHIP_FIELDS
from soluly.modules.authorization.models import Actor
from soluly.modules.authorization.scope import (
    effective_project_scope,
    filter_by_scope,
    project_ids_of_record,
    record_in_scope,
    UnreadableProjects,
)
from soluly.modules.permissions.matrix import permission_for
from soluly.modules.permissions.models import Action, PermissionValue, Resource, SCHEMA

logger = logging.getLogger(__name__)

DEFAULT_OWNERSHIP_FIELD = "created_by"


def permission_value(actor: Optional[Actor], resource: Any, action: Any) -> PermissionValue:
    if actor is None or actor.role is None:
        return PermissionValue.DENIED
    return permission_for(actor.role.permissions, resource, action)


def can(actor: Optional[Actor], resource: Any, action: Any) -> bool:
    """Is this action class permitted at all (ALLOWED or OWN_ONLY)? No row-level check."""
    return permission_value(actor, resource, action).grants


def can_view_own_only(actor: Optional[Actor], resource: Any) -> bool:
    return permission_value(actor, resource, Action.VIEW) is PermissionValue.OWN_ONLY


def ownership_field(resource: Any) -> str:
    key = resource.value if isinstance(resource, Resource) else str(resource)
    return OWNERSHIP_FIELDS.get(key, DEFAULT_OWNERSHIP_FIELD)


def owner_id_of(resource: Any, record: Any) -> Optional[str]:
    """Owner of a record for "own" checks; falls back to an explicit owner_id."""
    field = ownership_field(resource)
    if isinstance(record, Mapping):
        owner = record.get(field, record.get("owner_id"))
    else:
        owner = getattr(record, field, getattr(record, "owner_id", None))
    return None if owner is None else str(owner)


def can_on_record(actor: Optional[Actor], resource: Any, action: Any, record: Any) -> bool:
    """
    Row-level check: permission value AND project scope must both pass.

    ALLOWED passes the permission gate outright, OWN_ONLY only when the
    actor owns the record, DENIED never.
    """
    if record is None:
        return False
    value = permission_value(actor, resource, action)
    if value is PermissionValue.DENIED:
        return False
    if value is PermissionValue.OWN_ONLY:
        owner = owner_id_of(resource, record)
        if owner is None or owner != actor.member_id:
            return False
    try:
        project_ids = project_ids_of_record(record)
    except UnreadableProjects as e:
        logger.debug(f"Denying {resource} record with unreadable project association: {e}")
        return False
    return record_in_scope(effective_project_scope(actor), project_ids)


def can_settings(actor: Optional[Actor], action: Any) -> bool:
    """Settings actions have no "own" meaning and require ALLOWED."""
    return permission_value(actor, Resource.SETTINGS, action) is PermissionValue.ALLOWED


def can_any(actor: Optional[Actor], checks: Iterable[Tuple[Any, Any]]) -> bool:
    return any(can(actor, resource, action) for resource, action in checks)


def can_all(actor: Optional[Actor], checks: Iterable[Tuple[Any, Any]]) -> bool:
    return all(can(actor, resource, action) for resource, action in checks)


def accessible_resources(actor: Optional[Actor]) -> List[Resource]:
    return [
        resource for resource in SCHEMA
        if resource is not Resource.SETTINGS and can(actor, resource, Action.VIEW)
    ]


def visible_records(actor: Optional[Actor], resource: Any, records: Optional[Iterable[Any]]) -> List[Any]:
    """List helper: project scope first, then per-record view permission."""
    if not can(actor, resource, Action.VIEW):
        return []
    return [
        record for record in filter_by_scope(actor, records)
        if can_on_record(actor, resource, Action.VIEW, record)
    ]
