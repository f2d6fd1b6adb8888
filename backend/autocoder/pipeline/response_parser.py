"""Decode raw model output into typed records.

Only the envelope is checked here; grammar and semantics of the unit file are
left to the validator, the reconcilers and the corrector.
"""
import json
import re

from pydantic import ValidationError

from autocoder.pipeline.errors import MalformedResponse
from autocoder.pipeline.rules import CORRECT, EDIT, GENERATE_FROM_IMAGE, GENERATE_FROM_TEXT, RENAME_MOD
from autocoder.schemas.pipeline import UnitDraft

_NAME_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9_]")


def strip_code_fences(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]
        if content.endswith("```"):
            content = content[:-3]
        content = content.strip()
    return content


def parse_unit_draft(raw: str, operation: str = GENERATE_FROM_TEXT) -> UnitDraft:
    try:
        data = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"The AI returned an invalid JSON response: {e.msg}") from e

    if not isinstance(data, dict):
        raise MalformedResponse("The AI response is not a JSON object.")
    # sprite descriptions are only optional when the caller supplies the sprite
    if operation == GENERATE_FROM_TEXT and "image_prompts" not in data:
        raise MalformedResponse("The AI response is missing the required field 'image_prompts'.")

    try:
        return UnitDraft.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise MalformedResponse(f"The AI response is missing or has invalid fields: {', '.join(fields)}") from e


def parse_ini_text(raw: str) -> str:
    content = strip_code_fences(raw)
    if not content:
        raise MalformedResponse("The AI returned empty code.")
    return content


def parse_mod_name(raw: str) -> str:
    """First line of the reply with everything but [A-Za-z0-9_] removed."""
    first_line = next((line for line in raw.strip().splitlines() if line.strip()), "")
    name = _NAME_UNSAFE_RE.sub("", first_line)
    if not name:
        raise MalformedResponse("The AI did not suggest a usable mod name.")
    return name


def parse(raw: str, operation: str) -> UnitDraft | str:
    if operation in (GENERATE_FROM_TEXT, GENERATE_FROM_IMAGE):
        return parse_unit_draft(raw, operation)
    if operation in (EDIT, CORRECT):
        return parse_ini_text(raw)
    if operation == RENAME_MOD:
        return parse_mod_name(raw)
    raise ValueError(f"Unknown operation: {operation}")
