import json
from typing import Any


def sse_event(event: str, data: Any) -> str:
    payload = json.dumps(data) if not isinstance(data, str) else data
    return f"event: {event}\ndata: {payload}\n\n"


def sse_stage_change(stage: str) -> str:
    return sse_event("stage_change", {"stage": stage})


def sse_token(token: str) -> str:
    return sse_event("token", {"token": token})


def sse_unit(unit_summary: dict) -> str:
    return sse_event("unit", unit_summary)


def sse_validation(is_valid: bool, error: str | None = None) -> str:
    return sse_event("validation", {"is_valid": is_valid, "error": error})


def sse_error(message: str) -> str:
    return sse_event("error", {"message": message})


def sse_done(unit_id: str | None = None) -> str:
    return sse_event("done", {"unit_id": unit_id})
