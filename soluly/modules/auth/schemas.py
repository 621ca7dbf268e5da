from pydantic import BaseModel, EmailStr
from typing import Any, Dict, List, Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class OrganizationInfo(BaseModel):
    id: str
    name: Optional[str] = None
    slug: Optional[str] = None


class RoleInfo(BaseModel):
    id: str
    name: str
    is_system: bool = False


class MeResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    member_id: str
    organization: Optional[OrganizationInfo] = None
    role: Optional[RoleInfo] = None
    permissions: Dict[str, Dict[str, Any]]
    allowed_project_ids: Optional[List[str]] = None
    has_full_project_access: bool
    accessible_resources: List[str]
