from supabase import Client
from soluly.config.permissions_config import ROLE_TEMPLATES, RESOURCES, ACTION_LABELS
from soluly.core.exceptions import (
    SolulyError, DuplicateName, NotFound, SystemRoleImmutableName,
    SystemRoleUndeletable, UnknownTemplate
)
from soluly.modules.permissions.matrix import coerce_matrix, matrix_to_json, merge_template, validate_matrix
from soluly.modules.roles.schemas import (
    RoleCreate, RoleUpdate, RoleResponse, RoleTemplateResponse,
    ResourceSchema, ActionSchema
)
from typing import Callable, List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def list_role_templates() -> List[RoleTemplateResponse]:
    """Built-in templates; reference data, never stored as roles"""
    return [
        RoleTemplateResponse(key=key, **template)
        for key, template in ROLE_TEMPLATES.items()
    ]


def get_permission_schema() -> List[ResourceSchema]:
    """Resources and actions for the role editor"""
    return [
        ResourceSchema(
            key=resource,
            label=config["label"],
            actions=[ActionSchema(key=action, label=ACTION_LABELS[action]) for action in config["actions"]]
        )
        for resource, config in RESOURCES.items()
    ]


class RoleService:
    """
    Role Store: the only writer of role and permission data.

    Every method is scoped to one organization. on_role_changed is called with
    the role id after an update or delete so cached actor snapshots can be dropped.
    """

    def __init__(self, supabase: Client, on_role_changed: Optional[Callable[[str], object]] = None):
        self.supabase = supabase
        self.on_role_changed = on_role_changed

    def _notify(self, role_id: str) -> None:
        if self.on_role_changed is not None:
            self.on_role_changed(role_id)

    def _ensure_unique_name(self, organization_id: str, name: str, exclude_role_id: Optional[str] = None) -> None:
        result = self.supabase.table("roles")\
            .select("id, name")\
            .eq("organization_id", organization_id)\
            .execute()
        wanted = name.strip().casefold()
        for row in result.data or []:
            if row["id"] != exclude_role_id and (row.get("name") or "").strip().casefold() == wanted:
                raise DuplicateName(f"A role named '{name}' already exists")

    def create_role(self, organization_id: str, role_data: RoleCreate) -> RoleResponse:
        """Create a new role"""
        try:
            matrix = validate_matrix(role_data.permissions)
            name = role_data.name.strip()
            self._ensure_unique_name(organization_id, name)

            result = self.supabase.table("roles").insert({
                "organization_id": organization_id,
                "name": name,
                "description": role_data.description,
                "permissions": matrix_to_json(matrix),
                "project_scope": role_data.project_scope,
                "is_system": False
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create role")

            logger.info(f"Created role {result.data[0]['id']} ({name}) in organization {organization_id}")
            return RoleResponse(**result.data[0])
        except (SolulyError, HTTPException):
            raise
        except Exception as e:
            logger.error(f"Error creating role: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_role(self, organization_id: str, role_id: str) -> RoleResponse:
        """Get role by ID within the organization"""
        try:
            result = self.supabase.table("roles")\
                .select("*")\
                .eq("id", role_id)\
                .eq("organization_id", organization_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise NotFound("Role not found")

            return RoleResponse(**result.data[0])
        except (SolulyError, HTTPException):
            raise
        except Exception as e:
            logger.error(f"Error getting role {role_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_roles(self, organization_id: str) -> List[RoleResponse]:
        """List roles of the organization, system roles first"""
        try:
            result = self.supabase.table("roles")\
                .select("*")\
                .eq("organization_id", organization_id)\
                .order("is_system", desc=True)\
                .order("name")\
                .execute()
            return [RoleResponse(**role) for role in result.data or []]
        except Exception as e:
            logger.error(f"Error listing roles: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_role(self, organization_id: str, role_id: str, role_data: RoleUpdate) -> RoleResponse:
        """Update role; system roles keep their name but everything else stays editable"""
        try:
            existing = self.get_role(organization_id, role_id)
            patch = role_data.model_dump(exclude_unset=True)
            update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}

            new_name = patch.get("name")
            if new_name is not None:
                new_name = new_name.strip()
                if new_name != existing.name:
                    if existing.is_system:
                        raise SystemRoleImmutableName("System roles cannot be renamed")
                    if new_name.casefold() != existing.name.casefold():
                        self._ensure_unique_name(organization_id, new_name, exclude_role_id=role_id)
                    update_data["name"] = new_name
            if "description" in patch:
                update_data["description"] = patch["description"]
            if patch.get("permissions") is not None:
                update_data["permissions"] = matrix_to_json(validate_matrix(patch["permissions"]))
            if "project_scope" in patch:
                update_data["project_scope"] = patch["project_scope"]

            result = self.supabase.table("roles")\
                .update(update_data)\
                .eq("id", role_id)\
                .eq("organization_id", organization_id)\
                .execute()

            if not result.data:
                raise NotFound("Role not found")

            self._notify(role_id)
            return RoleResponse(**result.data[0])
        except (SolulyError, HTTPException):
            raise
        except Exception as e:
            logger.error(f"Error updating role {role_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def apply_template(self, organization_id: str, role_id: str, template_key: str) -> RoleResponse:
        """Overwrite a role's permissions and project scope from a built-in template"""
        template = ROLE_TEMPLATES.get(template_key)
        if template is None:
            raise UnknownTemplate(f"Unknown role template: {template_key}")
        existing = self.get_role(organization_id, role_id)
        matrix = merge_template(coerce_matrix(existing.permissions), template["permissions"])
        project_scope = template["project_scope"]
        return self.update_role(
            organization_id,
            role_id,
            RoleUpdate(
                permissions=matrix_to_json(matrix),
                project_scope=list(project_scope) if project_scope is not None else None,
            )
        )

    def delete_role(self, organization_id: str, role_id: str) -> bool:
        """Delete a non-system role. Members holding it are not reassigned here."""
        try:
            existing = self.get_role(organization_id, role_id)
            if existing.is_system:
                raise SystemRoleUndeletable("System roles cannot be deleted")

            result = self.supabase.table("roles")\
                .delete()\
                .eq("id", role_id)\
                .eq("organization_id", organization_id)\
                .execute()

            self._notify(role_id)
            logger.info(f"Deleted role {role_id} in organization {organization_id}")
            return len(result.data or []) > 0
        except (SolulyError, HTTPException):
            raise
        except Exception as e:
            logger.error(f"Error deleting role {role_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
