from pydantic import BaseModel
from typing import Literal, Optional


AccessType = Literal["full", "project_scoped", "team_assigned"]


class ProjectAccessEntry(BaseModel):
    id: str  # team member id
    name: str
    email: Optional[str] = None
    avatar: Optional[str] = None
    access_type: AccessType
    access_source: str
    is_owner: bool = False
    can_remove: bool = False


class ProjectAccessCandidate(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    avatar: Optional[str] = None
    role_name: Optional[str] = None


class ProjectAccessGrant(BaseModel):
    team_member_id: str


class ProjectAccessChange(BaseModel):
    team_member_id: str
    project_id: str
    allowed_project_ids: list
