import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from autocoder.dependencies import get_db, workspace_locks
from autocoder.schemas.workspace import WorkspaceCreate, WorkspaceResponse
from autocoder.services import workspace_service

router = APIRouter(prefix="/api/v1/workspaces", tags=["workspaces"])


@router.post("", response_model=WorkspaceResponse, status_code=201)
async def create_workspace(data: WorkspaceCreate, db: AsyncSession = Depends(get_db)):
    workspace = await workspace_service.create_workspace(db, data)
    return workspace_service.to_response(workspace)


@router.get("", response_model=list[WorkspaceResponse])
async def list_workspaces(db: AsyncSession = Depends(get_db)):
    return [workspace_service.to_response(w) for w in await workspace_service.list_workspaces(db)]


@router.get("/{workspace_id}", response_model=WorkspaceResponse)
async def get_workspace(workspace_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    workspace = await workspace_service.get_workspace(db, workspace_id)
    if not workspace:
        raise HTTPException(status_code=404, detail="Workspace not found")
    return workspace_service.to_response(workspace)


@router.delete("/{workspace_id}", status_code=204)
async def delete_workspace(workspace_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    async with workspace_locks[workspace_id]:
        deleted = await workspace_service.delete_workspace(db, workspace_id)
    workspace_locks.pop(workspace_id, None)
    if not deleted:
        raise HTTPException(status_code=404, detail="Workspace not found")
