from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class TemplateCreate(BaseModel):
    name: str
    template_type: str = "general"
    file_path: Optional[str] = None
    is_default: bool = False


class TemplateRead(BaseModel):
    id: int
    name: str
    template_type: str
    file_path: Optional[str] = None
    is_default: bool
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
