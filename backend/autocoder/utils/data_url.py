import base64
import binascii
import re

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".ini": "text/plain",
}

# Audio container formats the chat completions API accepts as input
AUDIO_INPUT_FORMATS = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
}

_DATA_URL_RE = re.compile(r"^data:([^;,]+)?(?:;[^,]*)?,(.*)$", re.DOTALL)


def get_mime_type(file_path: str) -> str:
    lowered = file_path.lower()
    for ext, mime in MIME_TYPES.items():
        if lowered.endswith(ext):
            return mime
    return "application/octet-stream"


def to_data_url(mime_type: str, b64_payload: str) -> str:
    return f"data:{mime_type};base64,{b64_payload}"


def split_data_url(data_url: str) -> tuple[str, str]:
    """Return (mime type, base64 payload) of a data URL."""
    match = _DATA_URL_RE.match(data_url or "")
    if not match:
        raise ValueError("Not a data URL")
    return match.group(1) or "application/octet-stream", match.group(2)


def decode_data_url(data_url: str) -> bytes:
    _, payload = split_data_url(data_url)
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def audio_input_format(mime_type: str) -> str | None:
    """Input format name for the model, or None when it cannot take this container."""
    return AUDIO_INPUT_FORMATS.get(mime_type.lower())
