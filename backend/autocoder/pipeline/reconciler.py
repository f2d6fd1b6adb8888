"""Deterministic repairs applied to every generated unit file.

Nothing here calls the model and nothing here can fail: these functions run
unconditionally, after the optional AI correction pass, so the two crash
causes the game cannot tolerate (a missing or wrong [core] name and asset
references without a matching file) are fixed regardless of model output.
"""
import logging
import re
from dataclasses import dataclass, field

from autocoder.schemas.pipeline import ImagePrompt
from autocoder.utils.ini_lines import (
    IMAGE_FILE_RE,
    SOUND_FILE_RE,
    files_in_value,
    is_safe_asset_name,
    key_value_of,
    newline_of,
    referenced_images,
    referenced_sounds,
    section_of,
)

logger = logging.getLogger(__name__)

NAME_LINE_RE = re.compile(r"^\s*name\s*:", re.IGNORECASE)
IMAGE_LINE_RE = re.compile(r"^\s*image\s*:", re.IGNORECASE)


def _find_section(lines: list[str], name: str) -> int | None:
    for i, line in enumerate(lines):
        if section_of(line) == name:
            return i
    return None


def _section_end(lines: list[str], header: int) -> int:
    for i in range(header + 1, len(lines)):
        if section_of(lines[i]) is not None:
            return i
    return len(lines)


def reconcile_name(content: str, unit_name: str) -> str:
    """Force the [core] 'name' value to be exactly `unit_name`.

    Overwrites the first name line of [core], inserts one right after the
    header when absent, or prepends a whole [core] block when the section is
    missing. Idempotent.
    """
    nl = newline_of(content)
    lines = content.split(nl)
    name_line = f"name: {unit_name}"

    core = _find_section(lines, "core")
    if core is None:
        return nl.join(["[core]", name_line, "", content])

    for i in range(core + 1, _section_end(lines, core)):
        if NAME_LINE_RE.match(lines[i]):
            lines[i] = name_line
            return nl.join(lines)

    lines.insert(core + 1, name_line)
    return nl.join(lines)


def canonical_unit_name(raw: str, taken: set[str] | frozenset[str] = frozenset()) -> str:
    """Fold a model-supplied name into unique lowercase_snake_case."""
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", raw.strip())
    name = re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_").lower()
    if not name:
        name = "unit"
    elif name[0].isdigit():
        name = f"unit_{name}"

    candidate, n = name, 2
    while candidate in taken:
        candidate = f"{name}_{n}"
        n += 1
    return candidate


def _ensure_main_image(lines: list[str], sprite_name: str, overwrite: bool) -> list[str]:
    """Point [graphics] image at `sprite_name` when it is missing, unusable, or `overwrite` is set."""
    sprite = f"image: {sprite_name}"
    graphics = _find_section(lines, "graphics")
    if graphics is None:
        while lines and lines[-1].strip() == "":
            lines.pop()
        return [*lines, "", "[graphics]", sprite]

    for i in range(graphics + 1, _section_end(lines, graphics)):
        if IMAGE_LINE_RE.match(lines[i]):
            pair = key_value_of(lines[i])
            files = files_in_value(pair[1], IMAGE_FILE_RE) if pair else []
            if overwrite or len(files) != 1 or not is_safe_asset_name(files[0]):
                if not overwrite:
                    logger.info("Replacing unusable main sprite reference: %s", lines[i].strip())
                lines[i] = sprite
            return lines
    lines.insert(graphics + 1, sprite)
    return lines


def _drop_lines(lines: list[str], keep_file, reason: str) -> list[str]:
    """Remove key/value lines referencing any image or sound file for which `keep_file` is false."""
    kept = []
    for line in lines:
        pair = key_value_of(line)
        if pair:
            files = files_in_value(pair[1], IMAGE_FILE_RE) + files_in_value(pair[1], SOUND_FILE_RE)
            if any(not keep_file(name) for name in files):
                logger.info("Dropping %s: %s", reason, line.strip())
                continue
        kept.append(line)
    return kept


def _is_sound(name: str) -> bool:
    return bool(SOUND_FILE_RE.fullmatch(name))


def _derived_prompt(unit_name: str, image_name: str) -> str:
    stem = image_name.rsplit("/", 1)[-1].rsplit(".", 1)[0]
    part = stem.removeprefix(unit_name).strip("_") or "main body"
    return f"{unit_name.replace('_', ' ')}, {part.replace('_', ' ')}"


@dataclass
class AssetPlan:
    """A unit file whose asset references match its asset list exactly."""

    content: str
    image_prompts: list[ImagePrompt] = field(default_factory=list)
    sound_names: list[str] = field(default_factory=list)


def reconcile_assets(
    content: str,
    unit_name: str,
    image_prompts: list[ImagePrompt],
    sound_names: list[str],
    audio_attached: bool,
    supplied_images: frozenset[str] = frozenset(),
    force_main_image: bool = False,
) -> AssetPlan:
    """Make image and sound references and declarations agree both ways.

    - [graphics] always references a main sprite; with `force_main_image`
      it is pinned to `<unit_name>.png`.
    - References escaping the unit folder are removed.
    - Every referenced image has a generation request, or is one of
      `supplied_images`; requests for unreferenced files are dropped.
    - Without audio, sound-bearing lines are removed; with audio, the sound
      list becomes exactly the referenced sound files.
    """
    nl = newline_of(content)
    lines = _ensure_main_image(content.split(nl), f"{unit_name}.png", force_main_image)
    lines = _drop_lines(lines, is_safe_asset_name, "reference outside the unit folder")

    if not audio_attached:
        lines = _drop_lines(lines, lambda name: not _is_sound(name), "sound reference without audio")
    content = nl.join(lines)

    sounds = referenced_sounds(content) if audio_attached else []
    dropped_sounds = set(sound_names) - set(sounds)
    if dropped_sounds:
        logger.info("Dropping unreferenced sound files: %s", sorted(dropped_sounds))

    by_name = {p.image_name: p for p in image_prompts}
    plan: list[ImagePrompt] = []
    for image_name in referenced_images(content):
        if image_name in supplied_images:
            continue
        prompt = by_name.get(image_name)
        if prompt is None:
            logger.info("Adding generation request for referenced image %s", image_name)
            prompt = ImagePrompt(image_name=image_name, prompt=_derived_prompt(unit_name, image_name))
        plan.append(prompt)

    dropped_images = set(by_name) - {p.image_name for p in plan}
    if dropped_images:
        logger.info("Dropping unreferenced image requests: %s", sorted(dropped_images))

    return AssetPlan(content=content, image_prompts=plan, sound_names=sounds)


def restrict_to_assets(content: str, unit_name: str, image_names: list[str], sound_names: list[str]) -> str:
    """Fit an edited unit file to the assets the unit already has.

    Edits never produce new files: lines referencing an image or sound the
    unit does not carry are removed, and [graphics] image falls back to the
    unit's main sprite.
    """
    available = set(image_names) | set(sound_names)
    main = f"{unit_name}.png" if f"{unit_name}.png" in image_names else next(iter(image_names), None)

    nl = newline_of(content)
    lines = content.split(nl)
    if main is not None:
        graphics_images = [
            name for name in referenced_images(_graphics_image_line(lines)) if name in available
        ]
        lines = _ensure_main_image(lines, main, overwrite=not graphics_images)
    lines = _drop_lines(lines, lambda name: name in available, "reference to a file the unit does not have")
    return nl.join(lines)


def _graphics_image_line(lines: list[str]) -> str:
    graphics = _find_section(lines, "graphics")
    if graphics is None:
        return ""
    for i in range(graphics + 1, _section_end(lines, graphics)):
        if IMAGE_LINE_RE.match(lines[i]):
            return lines[i]
    return ""
