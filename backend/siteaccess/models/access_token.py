from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlalchemy import Column, DateTime, JSON, String
from sqlmodel import Enum as SQLEnum, Field, SQLModel


class AccessTokenKind(str, Enum):
    client_portal = "client_portal"
    contractor_portal = "contractor_portal"
    roadmap_share = "roadmap_share"


class ContractorType(str, Enum):
    main_contractor = "main_contractor"
    subcontractor = "subcontractor"


class ShareTokenStatus(str, Enum):
    active = "active"
    revoked = "revoked"


class ClientPortalToken(SQLModel, table=True):
    __tablename__ = "client_portal_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", nullable=False, index=True)
    token: str = Field(
        sa_column=Column(String(128), nullable=False, unique=True, index=True),
    )
    email: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True, nullable=False)
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    access_count: int = Field(default=0, nullable=False)
    last_accessed_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class ContractorPortalToken(SQLModel, table=True):
    __tablename__ = "contractor_portal_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", nullable=False, index=True)
    token: str = Field(
        sa_column=Column(String(128), nullable=False, unique=True, index=True),
    )
    # Human-typable alias for the token, accepted wherever the token is.
    short_code: Optional[str] = Field(
        default=None,
        sa_column=Column(String(16), nullable=True, unique=True, index=True),
    )
    contractor_type: ContractorType = Field(
        default=ContractorType.main_contractor,
        sa_column=Column(SQLEnum(ContractorType, name="contractor_type"), nullable=False),
    )
    contractor_name: str = Field(nullable=False)
    contractor_email: str = Field(nullable=False)
    company_name: Optional[str] = Field(default=None)
    document_categories: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, server_default="[]"),
    )
    is_active: bool = Field(default=True, nullable=False)
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    access_count: int = Field(default=0, nullable=False)
    last_accessed_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class RoadmapShareToken(SQLModel, table=True):
    __tablename__ = "roadmap_share_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", nullable=False, index=True)
    token: str = Field(
        sa_column=Column(String(128), nullable=False, unique=True, index=True),
    )
    reviewer_name: Optional[str] = Field(default=None)
    reviewer_email: Optional[str] = Field(default=None)
    status: ShareTokenStatus = Field(
        default=ShareTokenStatus.active,
        sa_column=Column(SQLEnum(ShareTokenStatus, name="share_token_status"), nullable=False),
    )
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    access_count: int = Field(default=0, nullable=False)
    last_accessed_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
