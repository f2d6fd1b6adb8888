import logging
import uuid
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from autocoder.dependencies import get_db, get_openai_client, workspace_locks
from autocoder.models.workspace import Workspace
from autocoder.pipeline.orchestrator import run_edit, run_generation
from autocoder.schemas.chat import ChatEditRequest, ChatMessageResponse, ChatSendRequest
from autocoder.services import chat_service
from autocoder.utils.sse import sse_done, sse_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/workspaces/{workspace_id}/chat", tags=["chat"])


async def _require_workspace(db: AsyncSession, workspace_id: uuid.UUID) -> None:
    if not await db.get(Workspace, workspace_id):
        raise HTTPException(status_code=404, detail="Workspace not found")


def _locked_stream(workspace_id: uuid.UUID, events: AsyncGenerator[str, None]) -> StreamingResponse:
    async def event_stream():
        async with workspace_locks[workspace_id]:
            try:
                async for event in events:
                    yield event
            except Exception as e:
                logger.exception("Chat operation failed for workspace %s", workspace_id)
                yield sse_error(str(e))
                yield sse_done()

    return StreamingResponse(event_stream(), media_type="text/event-stream")


@router.get("/messages", response_model=list[ChatMessageResponse])
async def get_messages(workspace_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await chat_service.get_messages(db, workspace_id)


@router.post("/send")
async def send_message(
    workspace_id: uuid.UUID,
    data: ChatSendRequest,
    db: AsyncSession = Depends(get_db),
):
    await _require_workspace(db, workspace_id)
    client = get_openai_client()
    return _locked_stream(workspace_id, run_generation(client, db, workspace_id, data))


@router.post("/edit")
async def edit_latest_unit(
    workspace_id: uuid.UUID,
    data: ChatEditRequest,
    db: AsyncSession = Depends(get_db),
):
    await _require_workspace(db, workspace_id)
    client = get_openai_client()
    return _locked_stream(workspace_id, run_edit(client, db, workspace_id, data))
