"""The four chat operations: create from text, create from image, edit, rename.

Each returns a finished value or raises; nothing is handed back half built.
Callers must not start a second operation on the same mod while one is in
flight (the chat router serializes them per workspace).
"""
import logging
import uuid
from collections.abc import Sequence

from openai import AsyncOpenAI

from autocoder.pipeline.assets import fan_out_sounds, synthesize_images
from autocoder.pipeline.corrector import correct_ini
from autocoder.pipeline.errors import InvalidName
from autocoder.pipeline.llm import complete
from autocoder.pipeline.prompt_builder import (
    edit_request,
    generate_from_image_request,
    generate_from_text_request,
    rename_request,
)
from autocoder.pipeline.reconciler import (
    canonical_unit_name,
    reconcile_assets,
    reconcile_name,
    restrict_to_assets,
)
from autocoder.pipeline.response_parser import parse_ini_text, parse_mod_name, parse_unit_draft
from autocoder.pipeline.rules import GENERATE_FROM_IMAGE, GENERATE_FROM_TEXT, is_valid_mod_name
from autocoder.schemas.pipeline import Attachment
from autocoder.schemas.unit import AssetFile, GeneratedUnit, IniFile
from autocoder.utils.ini_lines import referenced_images, referenced_sounds

logger = logging.getLogger(__name__)


def _assemble(unit_name: str, content: str, images: list[AssetFile], sounds: list[AssetFile]) -> GeneratedUnit:
    return GeneratedUnit(
        id=uuid.uuid4().hex,
        unit_name=unit_name,
        ini_file=IniFile(name=f"{unit_name}.ini", content=content),
        images=images,
        sounds=sounds,
    )


async def _repair(
    client: AsyncOpenAI,
    content: str,
    unit_name: str,
    build_targets: Sequence[str],
    auto_fix: bool,
) -> str:
    content = reconcile_name(content, unit_name)
    if auto_fix:
        content = await correct_ini(client, content, build_targets)
        # the corrector is allowed to get the name wrong; this pass is not
        content = reconcile_name(content, unit_name)
    return content


async def generate_unit_from_text(
    client: AsyncOpenAI,
    prompt: str,
    *,
    existing_units: Sequence[str] = (),
    audio: Attachment | None = None,
    auto_fix: bool = True,
) -> GeneratedUnit:
    request = generate_from_text_request(prompt, tuple(existing_units), audio)
    draft = parse_unit_draft(await complete(client, request), GENERATE_FROM_TEXT)

    unit_name = canonical_unit_name(draft.unit_name, set(existing_units))
    if unit_name != draft.unit_name:
        logger.info("Unit name %r canonicalized to %r", draft.unit_name, unit_name)

    content = await _repair(client, draft.ini_content, unit_name, existing_units, auto_fix)
    plan = reconcile_assets(
        content,
        unit_name,
        draft.image_prompts,
        draft.sound_file_names,
        audio_attached=audio is not None,
    )

    images = await synthesize_images(client, plan.image_prompts)
    sounds = fan_out_sounds(plan.sound_names, audio)
    return _assemble(unit_name, plan.content, images, sounds)


async def generate_unit_from_image(
    client: AsyncOpenAI,
    prompt: str,
    image: Attachment,
    *,
    existing_units: Sequence[str] = (),
    auto_fix: bool = True,
) -> GeneratedUnit:
    """The supplied picture becomes `<unit_name>.png` as-is."""
    request = generate_from_image_request(prompt, image, tuple(existing_units))
    draft = parse_unit_draft(await complete(client, request), GENERATE_FROM_IMAGE)

    unit_name = canonical_unit_name(draft.unit_name, set(existing_units))
    sprite_name = f"{unit_name}.png"

    content = await _repair(client, draft.ini_content, unit_name, existing_units, auto_fix)
    plan = reconcile_assets(
        content,
        unit_name,
        draft.image_prompts,
        [],
        audio_attached=False,
        supplied_images=frozenset({sprite_name}),
        force_main_image=True,
    )

    extra_images = await synthesize_images(client, plan.image_prompts)
    images = [AssetFile(name=sprite_name, data_url=image.data_url), *extra_images]
    return _assemble(unit_name, plan.content, images, [])


async def edit_unit(
    client: AsyncOpenAI,
    unit: GeneratedUnit,
    instruction: str,
    *,
    existing_units: Sequence[str] = (),
    auto_fix: bool = True,
) -> GeneratedUnit:
    """Rewrite a unit's ini content against the assets it already has.

    No files are generated: references the edit adds to images or sounds the
    unit lacks are removed, and assets the edit stops referencing are dropped.
    """
    request = edit_request(unit.ini_file.content, instruction, tuple(existing_units), unit.unit_name)
    content = parse_ini_text(await complete(client, request))
    content = await _repair(client, content, unit.unit_name, existing_units, auto_fix)
    content = restrict_to_assets(
        content,
        unit.unit_name,
        [a.name for a in unit.images],
        [a.name for a in unit.sounds],
    )
    images, sounds = set(referenced_images(content)), set(referenced_sounds(content))
    return unit.model_copy(
        update={
            "ini_file": IniFile(name=unit.ini_file.name, content=content),
            "images": [a for a in unit.images if a.name in images],
            "sounds": [a for a in unit.sounds if a.name in sounds],
        }
    )


async def suggest_mod_name(client: AsyncOpenAI, suggestion: str, current_name: str) -> str:
    name = parse_mod_name(await complete(client, rename_request(suggestion, current_name)))
    if not is_valid_mod_name(name):
        raise InvalidName(f"'{name}' is not a valid mod folder name")
    return name
