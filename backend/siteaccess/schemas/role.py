from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from siteaccess.models.user import AppRole


class RoleAssignment(BaseModel):
    user_id: int
    # Plain string so unknown roles reach the domain check.
    role: str


class RoleAssignmentRead(BaseModel):
    id: int
    user_id: int
    role: AppRole
    granted_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
