import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autocoder.models.chat_thread import ChatThread
from autocoder.models.chat_message import ChatMessage


async def get_or_create_thread(db: AsyncSession, workspace_id: uuid.UUID) -> ChatThread:
    result = await db.execute(
        select(ChatThread).where(ChatThread.workspace_id == workspace_id)
    )
    thread = result.scalar_one_or_none()
    if not thread:
        thread = ChatThread(workspace_id=workspace_id)
        db.add(thread)
        await db.flush()
    return thread


async def add_message(
    db: AsyncSession,
    thread_id: int,
    role: str,
    content: str,
    image_url: str | None = None,
    audio_url: str | None = None,
) -> ChatMessage:
    msg = ChatMessage(thread_id=thread_id, role=role, content=content, image_url=image_url, audio_url=audio_url)
    db.add(msg)
    await db.commit()
    await db.refresh(msg)
    return msg


async def get_messages(db: AsyncSession, workspace_id: uuid.UUID) -> list[ChatMessage]:
    result = await db.execute(
        select(ChatThread).where(ChatThread.workspace_id == workspace_id)
    )
    thread = result.scalar_one_or_none()
    if not thread:
        return []
    result = await db.execute(
        select(ChatMessage)
        .where(ChatMessage.thread_id == thread.id)
        .order_by(ChatMessage.created_at, ChatMessage.id)
    )
    return list(result.scalars().all())
