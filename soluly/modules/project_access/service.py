from supabase import Client
from soluly.core.exceptions import SolulyError, NotFound
from soluly.modules.authorization.models import Actor, RoleSnapshot
from soluly.modules.authorization.scope import effective_project_scope, has_project_access
from soluly.modules.project_access.schemas import (
    ProjectAccessEntry, ProjectAccessCandidate, ProjectAccessChange
)
from typing import Any, Callable, Dict, List, Optional, Tuple
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

MEMBER_COLUMNS = "id, name, email, avatar, is_owner, allowed_project_ids, role_id, auth_user_id, organization_id"


def classify_access(
    member: Dict[str, Any],
    role: Optional[RoleSnapshot],
    project_id: str,
    team_assigned: bool = False,
) -> Optional[Tuple[str, str, bool]]:
    """
    How a member reaches a project: (access_type, access_source, can_remove), or None.

    Follows the same precedence as effective_project_scope: owner, member
    override, role scope. Project team assignment grants access on its own.
    """
    actor = Actor.from_rows(member, role=role)
    role_name = role.name if role and role.name else "role"

    access = None
    if actor.is_owner:
        access = ("full", "Organization Owner", False)
    elif effective_project_scope(actor) is None:
        access = ("full", f"Via {role_name} (full access)", False)
    elif has_project_access(actor, project_id):
        if actor.allowed_project_ids is not None:
            access = ("project_scoped", "Direct project assignment", True)
        else:
            access = ("project_scoped", f"Via {role_name} (role-based)", True)

    if team_assigned:
        if access is None:
            return ("team_assigned", "Assigned to project team", True)
        access_type, source, can_remove = access
        return (access_type, f"{source} + Team assignment", can_remove)
    return access


class ProjectAccessService:
    """
    Who can reach a project, and member-level project overrides.

    on_member_changed receives the member's auth_user_id after a grant or
    revoke so that member's cached session is re-resolved.
    """

    def __init__(self, supabase: Client, on_member_changed: Optional[Callable[[str], object]] = None):
        self.supabase = supabase
        self.on_member_changed = on_member_changed

    def _ensure_project(self, organization_id: str, project_id: str) -> None:
        result = self.supabase.table("projects")\
            .select("id")\
            .eq("id", project_id)\
            .eq("organization_id", organization_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise NotFound("Project not found")

    def _active_members(self, organization_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("team_members")\
            .select(MEMBER_COLUMNS)\
            .eq("organization_id", organization_id)\
            .eq("status", "active")\
            .execute()
        return result.data or []

    def _roles_by_id(self, organization_id: str) -> Dict[str, RoleSnapshot]:
        result = self.supabase.table("roles")\
            .select("*")\
            .eq("organization_id", organization_id)\
            .execute()
        return {str(row["id"]): RoleSnapshot.from_row(row) for row in result.data or []}

    def _team_member_ids(self, project_id: str) -> set:
        result = self.supabase.table("project_team_members")\
            .select("team_member_id")\
            .eq("project_id", project_id)\
            .execute()
        return {row["team_member_id"] for row in result.data or []}

    def _get_member(self, organization_id: str, member_id: str) -> Dict[str, Any]:
        result = self.supabase.table("team_members")\
            .select(MEMBER_COLUMNS)\
            .eq("id", member_id)\
            .eq("organization_id", organization_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise NotFound("Team member not found")
        return result.data[0]

    def list_access(self, organization_id: str, project_id: str) -> List[ProjectAccessEntry]:
        """Members with access to the project: owners first, then full access, then by name"""
        try:
            self._ensure_project(organization_id, project_id)
            roles = self._roles_by_id(organization_id)
            assigned = self._team_member_ids(project_id)

            entries = []
            for member in self._active_members(organization_id):
                role = roles.get(str(member.get("role_id")))
                access = classify_access(member, role, project_id, member["id"] in assigned)
                if access is None:
                    continue
                access_type, access_source, can_remove = access
                entries.append(ProjectAccessEntry(
                    id=member["id"],
                    name=member.get("name") or "",
                    email=member.get("email"),
                    avatar=member.get("avatar"),
                    access_type=access_type,
                    access_source=access_source,
                    is_owner=bool(member.get("is_owner")),
                    can_remove=can_remove
                ))

            entries.sort(key=lambda e: (not e.is_owner, e.access_type != "full", e.name.casefold()))
            return entries
        except (SolulyError, HTTPException):
            raise
        except Exception as e:
            logger.error(f"Error listing access for project {project_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_candidates(self, organization_id: str, project_id: str) -> List[ProjectAccessCandidate]:
        """Members who cannot reach the project through owner, override or role scope"""
        try:
            self._ensure_project(organization_id, project_id)
            roles = self._roles_by_id(organization_id)
            candidates = []
            for member in self._active_members(organization_id):
                role = roles.get(str(member.get("role_id")))
                if has_project_access(Actor.from_rows(member, role=role), project_id):
                    continue
                candidates.append(ProjectAccessCandidate(
                    id=member["id"],
                    name=member.get("name") or "",
                    email=member.get("email"),
                    avatar=member.get("avatar"),
                    role_name=role.name if role else None
                ))
            return candidates
        except (SolulyError, HTTPException):
            raise
        except Exception as e:
            logger.error(f"Error listing access candidates for project {project_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def _set_allowed_projects(self, member: Dict[str, Any], allowed: List[str]) -> None:
        self.supabase.table("team_members")\
            .update({"allowed_project_ids": allowed})\
            .eq("id", member["id"])\
            .eq("organization_id", member["organization_id"])\
            .execute()
        if self.on_member_changed is not None and member.get("auth_user_id"):
            self.on_member_changed(member["auth_user_id"])

    def grant_access(self, organization_id: str, project_id: str, member_id: str) -> ProjectAccessChange:
        """
        Add the project to the member's override list.

        A member without an override becomes restricted to this project only.
        """
        try:
            self._ensure_project(organization_id, project_id)
            member = self._get_member(organization_id, member_id)
            current = list(member.get("allowed_project_ids") or [])
            if project_id not in current:
                current.append(project_id)
            self._set_allowed_projects(member, current)
            logger.info(f"Granted project {project_id} to member {member_id}")
            return ProjectAccessChange(team_member_id=member_id, project_id=project_id, allowed_project_ids=current)
        except (SolulyError, HTTPException):
            raise
        except Exception as e:
            logger.error(f"Error granting project access: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def revoke_access(self, organization_id: str, project_id: str, member_id: str) -> ProjectAccessChange:
        """Remove the project from the member's override list and from the project team"""
        try:
            self._ensure_project(organization_id, project_id)
            member = self._get_member(organization_id, member_id)
            current = [p for p in (member.get("allowed_project_ids") or []) if p != project_id]
            self._set_allowed_projects(member, current)

            self.supabase.table("project_team_members")\
                .delete()\
                .eq("project_id", project_id)\
                .eq("team_member_id", member_id)\
                .execute()

            logger.info(f"Revoked project {project_id} from member {member_id}")
            return ProjectAccessChange(team_member_id=member_id, project_id=project_id, allowed_project_ids=current)
        except (SolulyError, HTTPException):
            raise
        except Exception as e:
            logger.error(f"Error revoking project access: {e}")
            raise HTTPException(status_code=500, detail=str(e))
