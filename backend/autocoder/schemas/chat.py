from datetime import datetime

from pydantic import BaseModel, Field

from autocoder.schemas.pipeline import Attachment


class ChatSendRequest(BaseModel):
    message: str = Field(min_length=1)
    image: Attachment | None = None
    audio: Attachment | None = None
    auto_fix: bool | None = None


class ChatEditRequest(BaseModel):
    instruction: str = Field(min_length=1)
    auto_fix: bool | None = None


class ModRenameRequest(BaseModel):
    suggestion: str = Field(min_length=1)


class ChatMessageResponse(BaseModel):
    id: int
    thread_id: int
    role: str
    content: str
    image_url: str | None = None
    audio_url: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
