from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from siteaccess.models.project import MemberPosition


class ProjectBase(BaseModel):
    name: str
    project_number: Optional[str] = None
    client_name: Optional[str] = None
    description: Optional[str] = None


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    project_number: Optional[str] = None
    client_name: Optional[str] = None
    description: Optional[str] = None


class ProjectRead(ProjectBase):
    id: int
    created_by: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PortalProjectRead(BaseModel):
    """What an anonymous portal visitor sees of a project."""

    id: int
    name: str
    project_number: Optional[str] = None
    client_name: Optional[str] = None

    class Config:
        from_attributes = True


class ProjectMemberCreate(BaseModel):
    user_id: int
    # Plain string so unknown positions reach the domain check.
    position: str = MemberPosition.secondary.value


class ProjectMemberRead(BaseModel):
    project_id: int
    user_id: int
    position: MemberPosition
    joined_at: datetime

    class Config:
        from_attributes = True


class ProjectMemberList(BaseModel):
    members: List[ProjectMemberRead]
