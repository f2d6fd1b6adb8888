"""Load a workspace's ModState from rows and write back what an operation changed."""
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autocoder.models.mod_folder import ModFolder
from autocoder.models.unit import Unit, UnitAsset
from autocoder.schemas.unit import AssetFile, GeneratedUnit, IniFile, Mod
from autocoder.services.mod_state import ModState


def to_generated_unit(row: Unit) -> GeneratedUnit:
    return GeneratedUnit(
        id=row.id,
        unit_name=row.unit_name,
        ini_file=IniFile(name=row.ini_name, content=row.ini_content),
        images=[AssetFile(name=a.name, data_url=a.data_url) for a in row.assets if a.kind == "image"],
        sounds=[AssetFile(name=a.name, data_url=a.data_url) for a in row.assets if a.kind == "sound"],
    )


def to_mod(folder: ModFolder) -> Mod:
    return Mod(name=folder.name, units=[to_generated_unit(u) for u in folder.units])


async def get_mod_folder(db: AsyncSession, workspace_id: uuid.UUID) -> ModFolder | None:
    result = await db.execute(select(ModFolder).where(ModFolder.workspace_id == workspace_id))
    return result.scalar_one_or_none()


async def load_mod_state(db: AsyncSession, workspace_id: uuid.UUID) -> ModState:
    folder = await get_mod_folder(db, workspace_id)
    return ModState(to_mod(folder) if folder else None)


def _unit_row(unit: GeneratedUnit, position: int) -> Unit:
    assets = [UnitAsset(kind="image", name=a.name, data_url=a.data_url) for a in unit.images]
    assets += [UnitAsset(kind="sound", name=a.name, data_url=a.data_url) for a in unit.sounds]
    return Unit(
        id=unit.id,
        position=position,
        unit_name=unit.unit_name,
        ini_name=unit.ini_file.name,
        ini_content=unit.ini_file.content,
        assets=assets,
    )


async def save_appended_unit(db: AsyncSession, workspace_id: uuid.UUID, mod: Mod) -> None:
    """Persist mod.units[-1], creating the mod row on the first unit."""
    folder = await get_mod_folder(db, workspace_id)
    if folder is None:
        folder = ModFolder(workspace_id=workspace_id, name=mod.name, units=[])
        db.add(folder)

    position = len(mod.units) - 1
    folder.units.append(_unit_row(mod.units[-1], position))
    await db.commit()


async def save_latest_unit(db: AsyncSession, workspace_id: uuid.UUID, mod: Mod) -> None:
    """Persist an edit of mod.units[-1]: new ini content, minus assets it stopped referencing."""
    folder = await get_mod_folder(db, workspace_id)
    if folder is None or not folder.units:
        raise LookupError(f"No stored units for workspace {workspace_id}")

    unit = mod.units[-1]
    row = folder.units[-1]
    if row.id != unit.id:
        raise LookupError(f"Latest stored unit {row.id} does not match {unit.id}")
    row.ini_content = unit.ini_file.content
    kept = {("image", a.name) for a in unit.images} | {("sound", a.name) for a in unit.sounds}
    row.assets = [a for a in row.assets if (a.kind, a.name) in kept]
    await db.commit()


async def save_mod_name(db: AsyncSession, workspace_id: uuid.UUID, mod: Mod) -> None:
    folder = await get_mod_folder(db, workspace_id)
    if folder is None:
        raise LookupError(f"No stored mod for workspace {workspace_id}")
    folder.name = mod.name
    await db.commit()
