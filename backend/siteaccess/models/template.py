from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime
from sqlmodel import Field, SQLModel


class CoverPageTemplate(SQLModel, table=True):
    """Report cover template; at most one per ``template_type`` is the default."""

    __tablename__ = "cover_page_templates"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False)
    template_type: str = Field(nullable=False, index=True, default="general")
    file_path: Optional[str] = Field(default=None)
    is_default: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, server_default="false"),
    )
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
