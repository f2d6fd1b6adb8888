"""One chat turn per function: run an operation, apply it to the mod, log the transcript.

Failures are recovered here. The user sees an explanatory message and the
stored mod is left exactly as it was.
"""
import logging
import uuid
from collections.abc import AsyncGenerator

from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from autocoder.config import settings
from autocoder.pipeline.errors import AutoCoderError, NoModYet, NoUnitToEdit
from autocoder.pipeline.generator import (
    edit_unit,
    generate_unit_from_image,
    generate_unit_from_text,
    suggest_mod_name,
)
from autocoder.schemas.chat import ChatEditRequest, ChatSendRequest
from autocoder.schemas.mod import summarize_unit
from autocoder.schemas.unit import Mod
from autocoder.services.chat_service import add_message, get_or_create_thread
from autocoder.services.mod_service import load_mod_state, save_appended_unit, save_latest_unit, save_mod_name
from autocoder.services.validation_service import validate_ini
from autocoder.utils.sse import sse_done, sse_error, sse_stage_change, sse_token, sse_unit, sse_validation

logger = logging.getLogger(__name__)


def _auto_fix(requested: bool | None) -> bool:
    return settings.auto_fix_default if requested is None else requested


async def _report_failure(
    db: AsyncSession, thread_id: int, prefix: str, error: AutoCoderError
) -> AsyncGenerator[str, None]:
    logger.warning("%s: %s", type(error).__name__, error)
    message = f"{prefix} {error}"
    await add_message(db, thread_id, "ai", message)
    yield sse_error(message)
    yield sse_done()


async def run_generation(
    client: AsyncOpenAI,
    db: AsyncSession,
    workspace_id: uuid.UUID,
    data: ChatSendRequest,
) -> AsyncGenerator[str, None]:
    """Create a unit from the message (and optional image or audio) and append it."""
    thread = await get_or_create_thread(db, workspace_id)
    await add_message(
        db,
        thread.id,
        "user",
        data.message,
        image_url=data.image.data_url if data.image else None,
        audio_url=data.audio.data_url if data.audio else None,
    )
    state = await load_mod_state(db, workspace_id)
    auto_fix = _auto_fix(data.auto_fix)

    try:
        if data.image is not None:
            yield sse_stage_change("generate_from_image")
            unit = await generate_unit_from_image(
                client, data.message, data.image, existing_units=state.unit_names, auto_fix=auto_fix
            )
        else:
            yield sse_stage_change("generate_from_text")
            unit = await generate_unit_from_text(
                client, data.message, existing_units=state.unit_names, audio=data.audio, auto_fix=auto_fix
            )
    except AutoCoderError as e:
        async for event in _report_failure(db, thread.id, "Sorry, I encountered an error.", e):
            yield event
        return

    mod = state.append_unit(unit)
    await save_appended_unit(db, workspace_id, mod)
    yield sse_unit(summarize_unit(unit).model_dump())

    yield sse_stage_change("validation")
    result = validate_ini(unit.ini_file.content)
    yield sse_validation(result.is_valid, result.error)

    reply = (
        f"I've generated the '{unit.unit_name}' unit and added it to your mod! "
        "You can describe another unit or download the mod folder."
    )
    await add_message(db, thread.id, "ai", reply)
    yield sse_token(reply)
    yield sse_done(unit.id)


async def run_edit(
    client: AsyncOpenAI,
    db: AsyncSession,
    workspace_id: uuid.UUID,
    data: ChatEditRequest,
) -> AsyncGenerator[str, None]:
    """Apply an edit instruction to the latest unit of the mod."""
    thread = await get_or_create_thread(db, workspace_id)
    state = await load_mod_state(db, workspace_id)
    latest = state.latest_unit

    if latest is None:
        await add_message(db, thread.id, "user", data.instruction)
        async for event in _report_failure(db, thread.id, "Sorry, I couldn't edit the code.", NoUnitToEdit()):
            yield event
        return

    await add_message(
        db, thread.id, "user", f"Can you modify the code for '{latest.unit_name}'? {data.instruction}"
    )
    yield sse_stage_change("edit")
    try:
        # the edited unit may only build units that came before it
        updated = await edit_unit(
            client,
            latest,
            data.instruction,
            existing_units=state.unit_names[:-1],
            auto_fix=_auto_fix(data.auto_fix),
        )
    except AutoCoderError as e:
        async for event in _report_failure(db, thread.id, "Sorry, I couldn't edit the code.", e):
            yield event
        return

    mod = state.replace_latest_unit(updated)
    await save_latest_unit(db, workspace_id, mod)
    yield sse_unit(summarize_unit(updated).model_dump())

    yield sse_stage_change("validation")
    result = validate_ini(updated.ini_file.content)
    yield sse_validation(result.is_valid, result.error)

    reply = "I've updated the code based on your request."
    await add_message(db, thread.id, "ai", reply)
    yield sse_token(reply)
    yield sse_done(updated.id)


async def run_rename(
    client: AsyncOpenAI,
    db: AsyncSession,
    workspace_id: uuid.UUID,
    suggestion: str,
) -> Mod:
    """Rename the mod from a user suggestion. Raises on failure, after logging it to the chat."""
    thread = await get_or_create_thread(db, workspace_id)
    await add_message(db, thread.id, "user", f'Please rename the mod based on this suggestion: "{suggestion}"')
    state = await load_mod_state(db, workspace_id)

    try:
        if state.mod is None:
            raise NoModYet()
        new_name = await suggest_mod_name(client, suggestion, state.mod.name)
        mod = state.rename_mod(new_name)
    except AutoCoderError as e:
        logger.warning("Rename rejected: %s", e)
        await add_message(db, thread.id, "ai", f"Sorry, I couldn't rename the mod. {e}")
        raise

    await save_mod_name(db, workspace_id, mod)
    await add_message(db, thread.id, "ai", f"Done! I've renamed the mod to '{mod.name}'.")
    return mod
