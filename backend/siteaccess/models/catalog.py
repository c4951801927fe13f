from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class MaterialCategory(SQLModel, table=True):
    """Shared internal catalog, readable and writable by any signed-in user."""

    __tablename__ = "material_categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(nullable=False, unique=True, index=True)
    name: str = Field(nullable=False)
    description: Optional[str] = Field(default=None)
    sort_order: int = Field(default=0, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
