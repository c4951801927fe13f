from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Column, DateTime
from sqlmodel import Enum as SQLEnum, Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover - imported lazily for type checking only
    from siteaccess.models.task import Task
    from siteaccess.models.user import User


class MemberPosition(str, Enum):
    primary = "primary"
    secondary = "secondary"
    admin = "admin"
    oversight = "oversight"
    draughtsman = "draughtsman"


MEMBER_POSITIONS = [position.value for position in MemberPosition]


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, nullable=False)
    project_number: Optional[str] = Field(default=None, index=True)
    client_name: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    created_by: int = Field(foreign_key="users.id", nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    members: List["ProjectMember"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    tasks: List["Task"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class ProjectMember(SQLModel, table=True):
    __tablename__ = "project_members"

    project_id: int = Field(foreign_key="projects.id", primary_key=True)
    user_id: int = Field(foreign_key="users.id", primary_key=True)
    position: MemberPosition = Field(
        default=MemberPosition.secondary,
        sa_column=Column(SQLEnum(MemberPosition, name="member_position"), nullable=False),
    )
    joined_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    project: Optional[Project] = Relationship(back_populates="members")
    user: Optional["User"] = Relationship(back_populates="memberships")
