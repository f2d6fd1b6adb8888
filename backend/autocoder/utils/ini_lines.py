"""Line grammar of unit files: section headers, key/value pairs, comments."""
import re

from autocoder.pipeline.rules import IMAGE_EXTENSIONS, SOUND_EXTENSIONS

COMMENT_PREFIX = "#"

SECTION_RE = re.compile(r"^\s*\[\s*([a-zA-Z0-9_]+)\s*\]\s*$")
KEY_VALUE_RE = re.compile(r"^\s*([a-zA-Z0-9_]+)\s*:\s*(.+)$")


def _file_pattern(extensions: tuple[str, ...]) -> re.Pattern:
    alternatives = "|".join(extensions)
    return re.compile(rf"[A-Za-z0-9_\-./]*[A-Za-z0-9_\-]\.(?:{alternatives})\b", re.IGNORECASE)


IMAGE_FILE_RE = _file_pattern(IMAGE_EXTENSIONS)
SOUND_FILE_RE = _file_pattern(SOUND_EXTENSIONS)


def is_safe_asset_name(name: str) -> bool:
    """Relative path inside the unit folder: no parent segments, not absolute."""
    if name.startswith(("/", "\\")):
        return False
    return ".." not in name.replace("\\", "/").split("/")


def newline_of(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def is_skippable(line: str) -> bool:
    stripped = line.strip()
    return stripped == "" or stripped.startswith(COMMENT_PREFIX)


def section_of(line: str) -> str | None:
    """Lowercased section name if the line is a header, else None."""
    match = SECTION_RE.match(line.strip())
    return match.group(1).lower() if match else None


def key_value_of(line: str) -> tuple[str, str] | None:
    if is_skippable(line):
        return None
    match = KEY_VALUE_RE.match(line.strip())
    if not match:
        return None
    return match.group(1), match.group(2).strip()


def files_in_value(value: str, pattern: re.Pattern) -> list[str]:
    return [m.group(0) for m in pattern.finditer(value)]


def referenced_files(text: str, pattern: re.Pattern) -> list[str]:
    """Filenames referenced by key/value lines, in first-seen order."""
    seen: dict[str, None] = {}
    for line in text.split("\n"):
        pair = key_value_of(line)
        if pair is None:
            continue
        for name in files_in_value(pair[1], pattern):
            seen.setdefault(name, None)
    return list(seen)


def referenced_images(text: str) -> list[str]:
    return referenced_files(text, IMAGE_FILE_RE)


def referenced_sounds(text: str) -> list[str]:
    return referenced_files(text, SOUND_FILE_RE)
