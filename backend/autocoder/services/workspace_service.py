import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autocoder.models.chat_thread import ChatThread
from autocoder.models.workspace import Workspace
from autocoder.schemas.workspace import WorkspaceCreate, WorkspaceResponse


def to_response(workspace: Workspace) -> WorkspaceResponse:
    mod = workspace.mod
    return WorkspaceResponse(
        id=workspace.id,
        title=workspace.title,
        mod_name=mod.name if mod else None,
        unit_count=len(mod.units) if mod else 0,
        created_at=workspace.created_at,
        updated_at=workspace.updated_at,
    )


async def create_workspace(db: AsyncSession, data: WorkspaceCreate) -> Workspace:
    workspace = Workspace(title=data.title)
    db.add(workspace)
    await db.flush()

    db.add(ChatThread(workspace_id=workspace.id))

    await db.commit()
    await db.refresh(workspace)
    return workspace


async def list_workspaces(db: AsyncSession) -> list[Workspace]:
    result = await db.execute(select(Workspace).order_by(Workspace.created_at.desc()))
    return list(result.scalars().all())


async def get_workspace(db: AsyncSession, workspace_id: uuid.UUID) -> Workspace | None:
    return await db.get(Workspace, workspace_id)


async def delete_workspace(db: AsyncSession, workspace_id: uuid.UUID) -> bool:
    workspace = await db.get(Workspace, workspace_id)
    if not workspace:
        return False
    await db.delete(workspace)
    await db.commit()
    return True
