import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autocoder.db.base import Base


class Workspace(Base):
    __tablename__ = "workspaces"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    mod: Mapped["ModFolder | None"] = relationship(
        "ModFolder", back_populates="workspace", uselist=False, lazy="selectin", cascade="all, delete-orphan"
    )
    chat_thread: Mapped["ChatThread | None"] = relationship(
        "ChatThread", back_populates="workspace", uselist=False, lazy="selectin", cascade="all, delete-orphan"
    )
