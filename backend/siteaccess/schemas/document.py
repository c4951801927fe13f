from datetime import datetime

from pydantic import BaseModel


class ProjectDocumentCreate(BaseModel):
    name: str
    file_path: str
    category: str = "general"
    bucket: str = "tenant-documents"


class ProjectDocumentRead(BaseModel):
    id: int
    project_id: int
    name: str
    category: str
    bucket: str
    file_path: str
    created_at: datetime

    class Config:
        from_attributes = True
