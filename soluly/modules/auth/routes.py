from fastapi import APIRouter, Depends
from soluly.modules.auth.schemas import LoginRequest, TokenResponse, MeResponse, OrganizationInfo, RoleInfo
from soluly.modules.auth.service import AuthService
from soluly.core.dependencies import (
    get_auth_service, get_current_token, get_current_user, get_registry,
    get_session_context, get_actor
)
from soluly.modules.authorization import evaluator, scope
from soluly.modules.authorization.models import Actor
from soluly.modules.permissions.matrix import default_matrix, matrix_to_json
from soluly.modules.session.context import SessionContext, SessionRegistry
from typing import Any, Dict

router = APIRouter(prefix="/auth", tags=["auth"])


def _me(user: Dict[str, Any], actor: Actor) -> MeResponse:
    role = actor.role
    return MeResponse(
        user_id=user["id"],
        email=user.get("email"),
        member_id=actor.member_id,
        organization=OrganizationInfo(**actor.organization.model_dump()) if actor.organization else None,
        role=RoleInfo(id=role.id, name=role.name, is_system=role.is_system) if role else None,
        permissions=matrix_to_json(role.permissions if role else default_matrix()),
        allowed_project_ids=scope.allowed_project_ids(actor),
        has_full_project_access=scope.has_full_project_access(actor),
        accessible_resources=[r.value for r in evaluator.accessible_resources(actor)],
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    current_user: Dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
    registry: SessionRegistry = Depends(get_registry)
):
    """Logout, invalidate token and drop the cached session"""
    service.logout(token)
    registry.invalidate_user(current_user["id"])
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(
    current_user: Dict = Depends(get_current_user),
    actor: Actor = Depends(get_actor)
):
    """Current member, organization, role and resolved permissions (for frontend UI)."""
    return _me(current_user, actor)


@router.post("/refresh", response_model=MeResponse)
async def refresh_user_data(
    current_user: Dict = Depends(get_current_user),
    context: SessionContext = Depends(get_session_context)
):
    """Re-resolve member, organization and role, e.g. after a role change."""
    await context.refresh_user_data()
    actor = await get_actor(context)
    return _me(current_user, actor)
