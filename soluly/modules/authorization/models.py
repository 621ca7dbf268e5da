# Resolved authorization snapshots
# Built by the session context from team_members, organizations and roles rows.
# The evaluator and the project-scope filter only ever read these.

"""
Source rows (Supabase):

team_members:
- id: uuid (primary key) - the member id used for "own" checks
- organization_id: uuid (foreign key to organizations.id)
- auth_user_id: uuid (foreign key to auth.users.id)
- role_id: uuid (nullable, foreign key to roles.id)
- is_owner: boolean - organization owner, always unrestricted project access
- allowed_project_ids: jsonb array (nullable) - member-level project override

organizations:
- id, name, slug

roles: see soluly/modules/roles/models.py
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from soluly.modules.permissions.matrix import coerce_matrix, default_matrix
from soluly.modules.permissions.models import PermissionMatrix


def _project_list(value: Any) -> Optional[List[str]]:
    """None stays None (unrestricted); anything that is not a list becomes [] (no access)."""
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value if v is not None]


class OrganizationSnapshot(BaseModel):
    id: str
    name: Optional[str] = None
    slug: Optional[str] = None


class RoleSnapshot(BaseModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    permissions: PermissionMatrix = Field(default_factory=default_matrix)
    project_scope: Optional[List[str]] = None
    is_system: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "RoleSnapshot":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            description=row.get("description"),
            permissions=coerce_matrix(row.get("permissions")),
            project_scope=_project_list(row.get("project_scope")),
            is_system=bool(row.get("is_system", False)),
        )


class Actor(BaseModel):
    member_id: str
    organization_id: str
    auth_user_id: Optional[str] = None
    role: Optional[RoleSnapshot] = None
    organization: Optional[OrganizationSnapshot] = None
    is_owner: bool = False
    allowed_project_ids: Optional[List[str]] = None
    role_id: Optional[str] = None  # as referenced by the member row, even if the role is gone

    @classmethod
    def from_rows(
        cls,
        member: Dict[str, Any],
        organization: Optional[Dict[str, Any]] = None,
        role: Optional[RoleSnapshot] = None,
    ) -> "Actor":
        return cls(
            member_id=str(member["id"]),
            organization_id=str(member["organization_id"]),
            auth_user_id=member.get("auth_user_id"),
            role=role,
            organization=OrganizationSnapshot(**organization) if organization else None,
            is_owner=bool(member.get("is_owner", False)),
            allowed_project_ids=_project_list(member.get("allowed_project_ids")),
            role_id=member.get("role_id"),
        )
