from fastapi import APIRouter, Depends
from soluly.modules.roles.schemas import (
    RoleCreate, RoleUpdate, RoleResponse, ApplyTemplateRequest,
    RoleTemplateResponse, ResourceSchema
)
from soluly.modules.roles.service import RoleService, list_role_templates, get_permission_schema
from soluly.core.dependencies import require_permission, get_role_service
from soluly.modules.authorization.models import Actor
from soluly.modules.permissions.models import Action, Resource
from typing import List

router = APIRouter(prefix="/roles", tags=["roles"])

can_view_settings = require_permission(Resource.SETTINGS, Action.VIEW)
can_manage_roles = require_permission(Resource.SETTINGS, Action.MANAGE_ROLES)


@router.get("/templates", response_model=List[RoleTemplateResponse])
async def get_templates(actor: Actor = Depends(can_view_settings)):
    """Built-in role templates for the role editor"""
    return list_role_templates()


@router.get("/schema", response_model=List[ResourceSchema])
async def get_schema(actor: Actor = Depends(can_view_settings)):
    """Resources and actions that make up a permission matrix"""
    return get_permission_schema()


@router.post("", response_model=RoleResponse, status_code=201)
async def create_role(
    role_data: RoleCreate,
    actor: Actor = Depends(can_manage_roles),
    service: RoleService = Depends(get_role_service)
):
    """Create a new role in the actor's organization"""
    return service.create_role(actor.organization_id, role_data)


@router.get("", response_model=List[RoleResponse])
async def list_roles(
    actor: Actor = Depends(can_view_settings),
    service: RoleService = Depends(get_role_service)
):
    """List roles of the actor's organization"""
    return service.list_roles(actor.organization_id)


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: str,
    actor: Actor = Depends(can_view_settings),
    service: RoleService = Depends(get_role_service)
):
    """Get role by ID"""
    return service.get_role(actor.organization_id, role_id)


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    role_data: RoleUpdate,
    actor: Actor = Depends(can_manage_roles),
    service: RoleService = Depends(get_role_service)
):
    """Update role; renaming a system role is rejected"""
    return service.update_role(actor.organization_id, role_id, role_data)


@router.post("/{role_id}/apply-template", response_model=RoleResponse)
async def apply_template(
    role_id: str,
    body: ApplyTemplateRequest,
    actor: Actor = Depends(can_manage_roles),
    service: RoleService = Depends(get_role_service)
):
    """Overwrite the role's permissions and project scope with a built-in template"""
    return service.apply_template(actor.organization_id, role_id, body.template)


@router.delete("/{role_id}", status_code=204)
async def delete_role(
    role_id: str,
    actor: Actor = Depends(can_manage_roles),
    service: RoleService = Depends(get_role_service)
):
    """Delete a non-system role"""
    service.delete_role(actor.organization_id, role_id)
    return None
