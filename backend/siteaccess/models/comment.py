from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel


class ClientComment(SQLModel, table=True):
    """Feedback left on a project, by a member or through a client-portal token."""

    __tablename__ = "client_comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", nullable=False, index=True)
    # Set when the comment was written through a portal token.
    access_token_id: Optional[int] = Field(
        default=None, foreign_key="client_portal_tokens.id", index=True
    )
    user_id: Optional[int] = Field(default=None, foreign_key="users.id")
    author_name: str = Field(nullable=False)
    author_email: Optional[str] = Field(default=None)
    report_type: str = Field(nullable=False, default="general")
    body: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
