from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


# Stored JSON shape; values are validated by soluly.modules.permissions.matrix
PermissionsJSON = Dict[str, Dict[str, Any]]


class RoleCreate(BaseModel):
    # no is_system: system roles are created only by scripts/seed_system_roles.py
    name: str = Field(min_length=1)
    description: Optional[str] = None
    permissions: PermissionsJSON
    project_scope: Optional[List[str]] = None


class RoleUpdate(BaseModel):
    # Only fields present in the request body are applied; project_scope: null means all projects
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    permissions: Optional[PermissionsJSON] = None
    project_scope: Optional[List[str]] = None


class RoleResponse(BaseModel):
    id: str
    organization_id: str
    name: str
    description: Optional[str] = None
    permissions: PermissionsJSON
    project_scope: Optional[List[str]] = None
    is_system: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApplyTemplateRequest(BaseModel):
    template: str


class RoleTemplateResponse(BaseModel):
    key: str
    name: str
    description: str
    permissions: PermissionsJSON
    project_scope: Optional[List[str]] = None


class ActionSchema(BaseModel):
    key: str
    label: str


class ResourceSchema(BaseModel):
    key: str
    label: str
    actions: List[ActionSchema]
