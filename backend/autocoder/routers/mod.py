import uuid

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from autocoder.dependencies import get_db, get_openai_client, workspace_locks
from autocoder.models.workspace import Workspace
from autocoder.pipeline.errors import InvalidName, MalformedResponse, NoModYet, TransportError
from autocoder.pipeline.orchestrator import run_rename
from autocoder.schemas.chat import ModRenameRequest
from autocoder.schemas.mod import ModSummary
from autocoder.schemas.pipeline import UnitValidationResponse
from autocoder.schemas.unit import GeneratedUnit, Mod
from autocoder.services.export_service import archive_name, build_archive
from autocoder.services.mod_service import load_mod_state
from autocoder.services.mod_state import ModState
from autocoder.services.validation_service import check_asset_closure, validate_ini

router = APIRouter(prefix="/api/v1/workspaces/{workspace_id}/mod", tags=["mod"])


async def _load_state(db: AsyncSession, workspace_id: uuid.UUID) -> ModState:
    if not await db.get(Workspace, workspace_id):
        raise HTTPException(status_code=404, detail="Workspace not found")
    return await load_mod_state(db, workspace_id)


async def _require_mod(db: AsyncSession, workspace_id: uuid.UUID) -> Mod:
    state = await _load_state(db, workspace_id)
    if state.mod is None:
        raise HTTPException(status_code=409, detail=NoModYet.user_message)
    return state.mod


async def _require_latest(db: AsyncSession, workspace_id: uuid.UUID) -> GeneratedUnit:
    mod = await _require_mod(db, workspace_id)
    if not mod.units:
        raise HTTPException(status_code=409, detail=NoModYet.user_message)
    return mod.units[-1]


@router.get("", response_model=Mod)
async def get_mod(workspace_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await _require_mod(db, workspace_id)


@router.get("/summary", response_model=ModSummary)
async def get_mod_summary(workspace_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return ModSummary.from_mod(await _require_mod(db, workspace_id))


@router.get("/latest", response_model=GeneratedUnit)
async def get_latest_unit(workspace_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await _require_latest(db, workspace_id)


@router.post("/rename", response_model=ModSummary)
async def rename_mod(workspace_id: uuid.UUID, data: ModRenameRequest, db: AsyncSession = Depends(get_db)):
    await _load_state(db, workspace_id)
    client = get_openai_client()
    async with workspace_locks[workspace_id]:
        try:
            mod = await run_rename(client, db, workspace_id, data.suggestion)
        except NoModYet as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        except (InvalidName, MalformedResponse) as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        except TransportError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e
    return ModSummary.from_mod(mod)


@router.post("/validate", response_model=UnitValidationResponse)
async def validate_latest_unit(workspace_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    unit = await _require_latest(db, workspace_id)
    closure = check_asset_closure(unit)
    return UnitValidationResponse(
        unit_name=unit.unit_name,
        syntax=validate_ini(unit.ini_file.content),
        closure=closure,
        closed=closure.closed,
    )


@router.get("/export")
async def export_mod(workspace_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    mod = await _require_mod(db, workspace_id)
    headers = {"Content-Disposition": f'attachment; filename="{archive_name(mod)}"'}
    return Response(content=build_archive(mod), media_type="application/zip", headers=headers)
