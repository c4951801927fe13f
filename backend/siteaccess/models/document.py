from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class ProjectDocument(SQLModel, table=True):
    __tablename__ = "project_documents"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    # Matches ContractorPortalToken.document_categories entries.
    category: str = Field(nullable=False, default="general", index=True)
    bucket: str = Field(nullable=False, default="tenant-documents")
    file_path: str = Field(nullable=False)
    created_by: int = Field(foreign_key="users.id", nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
