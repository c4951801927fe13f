from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ClientCommentCreate(BaseModel):
    body: str = Field(min_length=1)
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    report_type: str = "general"


class ClientCommentUpdate(BaseModel):
    body: str = Field(min_length=1)


class ClientCommentRead(BaseModel):
    id: int
    project_id: int
    access_token_id: Optional[int] = None
    user_id: Optional[int] = None
    author_name: str
    author_email: Optional[str] = None
    report_type: str
    body: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
