import uuid
from datetime import datetime

from pydantic import BaseModel


class WorkspaceCreate(BaseModel):
    title: str = "Untitled mod"


class WorkspaceResponse(BaseModel):
    id: uuid.UUID
    title: str
    mod_name: str | None = None
    unit_count: int = 0
    created_at: datetime
    updated_at: datetime
