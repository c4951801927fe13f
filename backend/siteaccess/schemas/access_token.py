from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from siteaccess.models.access_token import AccessTokenKind, ContractorType


class AccessTokenCreate(BaseModel):
    kind: AccessTokenKind = AccessTokenKind.client_portal
    expires_in_days: Optional[int] = Field(default=None, ge=1, le=365)
    email: Optional[str] = None
    contractor_name: Optional[str] = None
    contractor_type: ContractorType = ContractorType.main_contractor
    company_name: Optional[str] = None
    document_categories: List[str] = Field(default_factory=list)
    reviewer_name: Optional[str] = None


class AccessTokenRead(BaseModel):
    id: int
    kind: AccessTokenKind
    project_id: int
    token: str
    short_code: Optional[str] = None
    expires_at: datetime
    access_count: int
    last_accessed_at: Optional[datetime] = None
    created_at: datetime


def serialize_token(row, kind: AccessTokenKind) -> AccessTokenRead:
    return AccessTokenRead(
        id=row.id,
        kind=kind,
        project_id=row.project_id,
        token=row.token,
        short_code=getattr(row, "short_code", None),
        expires_at=row.expires_at,
        access_count=row.access_count,
        last_accessed_at=row.last_accessed_at,
        created_at=row.created_at,
    )
