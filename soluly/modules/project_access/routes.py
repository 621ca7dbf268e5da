from fastapi import APIRouter, Depends, HTTPException, status
from soluly.database.supabase_client import get_supabase
from soluly.modules.project_access.schemas import (
    ProjectAccessEntry, ProjectAccessCandidate, ProjectAccessGrant, ProjectAccessChange
)
from soluly.modules.project_access.service import ProjectAccessService
from soluly.core.dependencies import require_permission, get_registry
from soluly.modules.authorization.models import Actor
from soluly.modules.authorization.scope import has_project_access
from soluly.modules.permissions.models import Action, Resource
from soluly.modules.session.context import SessionRegistry
from supabase import Client
from typing import List

router = APIRouter(prefix="/projects/{project_id}/access", tags=["project-access"])


def get_project_access_service(
    supabase: Client = Depends(get_supabase),
    registry: SessionRegistry = Depends(get_registry)
) -> ProjectAccessService:
    return ProjectAccessService(supabase, on_member_changed=registry.invalidate_user)


@router.get("", response_model=List[ProjectAccessEntry])
async def list_project_access(
    project_id: str,
    actor: Actor = Depends(require_permission(Resource.PROJECTS, Action.VIEW)),
    service: ProjectAccessService = Depends(get_project_access_service)
):
    """Members who can access the project (only if the project is in the caller's scope)"""
    if not has_project_access(actor, project_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Project not accessible")
    return service.list_access(actor.organization_id, project_id)


@router.get("/candidates", response_model=List[ProjectAccessCandidate])
async def list_access_candidates(
    project_id: str,
    actor: Actor = Depends(require_permission(Resource.SETTINGS, Action.MANAGE_USERS)),
    service: ProjectAccessService = Depends(get_project_access_service)
):
    """Members without access to the project"""
    return service.list_candidates(actor.organization_id, project_id)


@router.post("", response_model=ProjectAccessChange, status_code=201)
async def grant_project_access(
    project_id: str,
    grant: ProjectAccessGrant,
    actor: Actor = Depends(require_permission(Resource.SETTINGS, Action.MANAGE_USERS)),
    service: ProjectAccessService = Depends(get_project_access_service)
):
    """Grant a member access to the project"""
    return service.grant_access(actor.organization_id, project_id, grant.team_member_id)


@router.delete("/{team_member_id}", response_model=ProjectAccessChange)
async def revoke_project_access(
    project_id: str,
    team_member_id: str,
    actor: Actor = Depends(require_permission(Resource.SETTINGS, Action.MANAGE_USERS)),
    service: ProjectAccessService = Depends(get_project_access_service)
):
    """Revoke a member's access to the project"""
    return service.revoke_access(actor.organization_id, project_id, team_member_id)
