"""Model request payloads for every operation the assistant performs."""
import logging
from dataclasses import dataclass

from autocoder.config import settings
from autocoder.pipeline.prompts.corrector import CORRECTOR_SYSTEM, build_correction_prompt
from autocoder.pipeline.prompts.edit import EDIT_SYSTEM, build_edit_prompt
from autocoder.pipeline.prompts.generate import (
    GENERATION_SYSTEM,
    IMAGE_GENERATION_SYSTEM,
    build_generation_prompt,
    build_image_generation_prompt,
)
from autocoder.pipeline.prompts.rename import RENAME_SYSTEM, build_rename_prompt
from autocoder.pipeline.rules import (
    CORRECT,
    EDIT,
    GENERATE_FROM_IMAGE,
    GENERATE_FROM_TEXT,
    RENAME_MOD,
    RuleContext,
)
from autocoder.schemas.pipeline import Attachment
from autocoder.utils.data_url import audio_input_format, split_data_url

logger = logging.getLogger(__name__)


def _strict_schema(name: str, properties: dict) -> dict:
    return {
        "type": "json_schema",
        "json_schema": {
            "name": name,
            "strict": True,
            "schema": {
                "type": "object",
                "properties": properties,
                "required": list(properties),
                "additionalProperties": False,
            },
        },
    }


_UNIT_NAME_PROPERTY = {
    "type": "string",
    "description": "Unique unit identifier in lowercase_snake_case, e.g. 'heavy_tank'. Used for the folder, the .ini filename and the [core] 'name' value.",
}
_INI_CONTENT_PROPERTY = {
    "type": "string",
    "description": "The complete Rusted Warfare .ini file content for the unit.",
}

UNIT_RESPONSE_FORMAT = _strict_schema(
    "unit_package",
    {
        "unit_name": _UNIT_NAME_PROPERTY,
        "ini_content": _INI_CONTENT_PROPERTY,
        "image_prompts": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "image_name": {
                        "type": "string",
                        "description": "Image filename exactly as referenced in the .ini, e.g. 'heavy_tank.png'.",
                    },
                    "prompt": {
                        "type": "string",
                        "description": "A visual description used to generate this one sprite.",
                    },
                },
                "required": ["image_name", "prompt"],
                "additionalProperties": False,
            },
        },
        "sound_file_names": {
            "type": "array",
            "description": "Sound filenames made from the attached audio clip. MUST be empty when no audio is attached.",
            "items": {"type": "string"},
        },
    },
)

IMAGE_UNIT_RESPONSE_FORMAT = _strict_schema(
    "unit_from_image",
    {
        "unit_name": _UNIT_NAME_PROPERTY,
        "ini_content": _INI_CONTENT_PROPERTY,
    },
)


@dataclass
class ModelRequest:
    operation: str
    messages: list[dict]
    temperature: float
    max_tokens: int
    response_format: dict | None = None

    @property
    def structured(self) -> bool:
        return self.response_format is not None


def _image_part(image: Attachment) -> dict:
    return {"type": "image_url", "image_url": {"url": image.data_url}}


def _audio_part(audio: Attachment) -> dict | None:
    audio_format = audio_input_format(audio.mime_type)
    if audio_format is None:
        logger.info("Audio clip of type %s is not sent to the model", audio.mime_type)
        return None
    _, payload = split_data_url(audio.data_url)
    return {"type": "input_audio", "input_audio": {"data": payload, "format": audio_format}}


def generate_from_text_request(
    prompt: str,
    existing_units: tuple[str, ...] = (),
    audio: Attachment | None = None,
) -> ModelRequest:
    context = RuleContext(existing_units=existing_units, audio_attached=audio is not None)
    audio_part = _audio_part(audio) if audio is not None else None
    text = build_generation_prompt(prompt, context, audio_playable=audio is None or audio_part is not None)
    content: str | list[dict] = text
    if audio_part is not None:
        content = [{"type": "text", "text": text}, audio_part]
    return ModelRequest(
        operation=GENERATE_FROM_TEXT,
        messages=[
            {"role": "system", "content": GENERATION_SYSTEM},
            {"role": "user", "content": content},
        ],
        temperature=settings.generation_temperature,
        max_tokens=8000,
        response_format=UNIT_RESPONSE_FORMAT,
    )


def generate_from_image_request(
    prompt: str,
    image: Attachment,
    existing_units: tuple[str, ...] = (),
) -> ModelRequest:
    context = RuleContext(existing_units=existing_units)
    return ModelRequest(
        operation=GENERATE_FROM_IMAGE,
        messages=[
            {"role": "system", "content": IMAGE_GENERATION_SYSTEM},
            {
                "role": "user",
                "content": [
                    _image_part(image),
                    {"type": "text", "text": build_image_generation_prompt(prompt, context)},
                ],
            },
        ],
        temperature=settings.generation_temperature,
        max_tokens=8000,
        response_format=IMAGE_UNIT_RESPONSE_FORMAT,
    )


def edit_request(
    current_code: str,
    instruction: str,
    existing_units: tuple[str, ...] = (),
    unit_name: str | None = None,
) -> ModelRequest:
    context = RuleContext(existing_units=existing_units, unit_name=unit_name)
    return ModelRequest(
        operation=EDIT,
        messages=[
            {"role": "system", "content": EDIT_SYSTEM},
            {"role": "user", "content": build_edit_prompt(current_code, instruction, context)},
        ],
        temperature=settings.edit_temperature,
        max_tokens=8000,
    )


def correction_request(content: str, allowed_build_targets: tuple[str, ...] = ()) -> ModelRequest:
    context = RuleContext(existing_units=allowed_build_targets)
    return ModelRequest(
        operation=CORRECT,
        messages=[
            {"role": "system", "content": CORRECTOR_SYSTEM},
            {"role": "user", "content": build_correction_prompt(content, context)},
        ],
        temperature=settings.correction_temperature,
        max_tokens=8000,
    )


def rename_request(suggestion: str, current_name: str) -> ModelRequest:
    return ModelRequest(
        operation=RENAME_MOD,
        messages=[
            {"role": "system", "content": RENAME_SYSTEM},
            {"role": "user", "content": build_rename_prompt(suggestion, current_name)},
        ],
        temperature=settings.rename_temperature,
        max_tokens=50,
    )


_BUILDERS = {
    GENERATE_FROM_TEXT: generate_from_text_request,
    GENERATE_FROM_IMAGE: generate_from_image_request,
    EDIT: edit_request,
    CORRECT: correction_request,
    RENAME_MOD: rename_request,
}


def build_request(operation: str, **params) -> ModelRequest:
    """Dispatch to the request builder for `operation`."""
    try:
        builder = _BUILDERS[operation]
    except KeyError:
        raise ValueError(f"Unknown operation: {operation}") from None
    return builder(**params)
