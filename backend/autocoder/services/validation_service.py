from autocoder.schemas.pipeline import ClosureReport, ValidationResult
from autocoder.schemas.unit import GeneratedUnit
from autocoder.utils.ini_lines import KEY_VALUE_RE, is_skippable, referenced_images, referenced_sounds, section_of

EMPTY_ERROR = "Generated code is empty."
MISSING_CORE = "The generated code is missing the required '[core]' section."
MISSING_CORE_NAME = "The '[core]' section is missing the required 'name' key."
MISSING_GRAPHICS = "The generated code is missing the required '[graphics]' section."
MISSING_GRAPHICS_IMAGE = "The '[graphics]' section is missing the required 'image' key."


def _structure_error(message: str) -> ValidationResult:
    return ValidationResult(is_valid=False, error=message, error_kind="structure")


def validate_ini(content: str | None) -> ValidationResult:
    """Check the minimal structure the game loader needs.

    Reports the first syntax error by 1-based line number; the structural
    checks only run once every line parsed.
    """
    if not content or not isinstance(content, str) or content.strip() == "":
        return ValidationResult(is_valid=False, error=EMPTY_ERROR, error_kind="empty")

    seen_core = seen_graphics = False
    core_name = graphics_image = False
    current = ""

    for index, line in enumerate(content.split("\n"), start=1):
        if is_skippable(line):
            continue
        stripped = line.strip()

        section = section_of(stripped)
        if section is not None:
            current = section
            seen_core = seen_core or section == "core"
            seen_graphics = seen_graphics or section == "graphics"
            continue

        match = KEY_VALUE_RE.match(stripped)
        if not match:
            return ValidationResult(
                is_valid=False,
                error=f"Invalid syntax on line {index}. Expected 'key: value' format, but found: \"{stripped}\"",
                error_kind="syntax",
                line=index,
            )

        key = match.group(1).lower()
        if current == "core" and key == "name":
            core_name = True
        if current == "graphics" and key == "image":
            graphics_image = True

    if not seen_core:
        return _structure_error(MISSING_CORE)
    if not core_name:
        return _structure_error(MISSING_CORE_NAME)
    if not seen_graphics:
        return _structure_error(MISSING_GRAPHICS)
    if not graphics_image:
        return _structure_error(MISSING_GRAPHICS_IMAGE)

    return ValidationResult(is_valid=True)


def check_asset_closure(unit: GeneratedUnit) -> ClosureReport:
    """Compare the files a unit's ini references with the assets it carries."""
    content = unit.ini_file.content
    images_referenced = referenced_images(content)
    sounds_referenced = referenced_sounds(content)
    image_names = {a.name for a in unit.images}
    sound_names = {a.name for a in unit.sounds}

    return ClosureReport(
        dangling_images=[n for n in images_referenced if n not in image_names],
        orphan_images=sorted(image_names - set(images_referenced)),
        dangling_sounds=[n for n in sounds_referenced if n not in sound_names],
        orphan_sounds=sorted(sound_names - set(sounds_referenced)),
    )
