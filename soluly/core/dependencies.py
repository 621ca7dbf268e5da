"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from soluly.database.supabase_client import get_supabase
from soluly.modules.auth.service import AuthService
from soluly.modules.authorization import evaluator
from soluly.modules.authorization.models import Actor
from soluly.modules.permissions.models import Action, Resource
from soluly.modules.roles.service import RoleService
from soluly.modules.session.context import SessionContext, SessionRegistry, get_session_registry
from supabase import Client
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def get_registry() -> SessionRegistry:
    return get_session_registry()


def get_session_context(
    user_data: Dict[str, Any] = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_registry)
) -> SessionContext:
    return registry.get(user_data["id"])


async def get_actor(context: SessionContext = Depends(get_session_context)) -> Actor:
    """
    Resolved actor for the request.

    TimedOut / ConnectivityError propagate and are rendered as 503 so the
    client can retry instead of treating the user as unauthorized.
    """
    actor = await context.resolve()
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of any organization"
        )
    return actor


def require_permission(resource: Resource, action: Action):
    """Factory function to create permission check dependency"""
    async def check_permission(actor: Actor = Depends(get_actor)) -> Actor:
        """Dependency to check if the actor holds the permission (allowed or own)"""
        if resource is Resource.SETTINGS:
            allowed = evaluator.can_settings(actor, action)
        else:
            allowed = evaluator.can(actor, resource, action)
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {resource.value}.{action.value}"
            )
        return actor
    return check_permission


def get_role_service(
    supabase: Client = Depends(get_supabase),
    registry: SessionRegistry = Depends(get_registry)
) -> RoleService:
    return RoleService(supabase, on_role_changed=registry.invalidate_role)
