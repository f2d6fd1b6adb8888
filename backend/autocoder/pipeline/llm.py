import logging
import time

import openai
from openai import AsyncOpenAI

from autocoder.config import settings
from autocoder.pipeline.errors import MalformedResponse, RequestTimeout, TransportError
from autocoder.pipeline.prompt_builder import ModelRequest

logger = logging.getLogger(__name__)


async def complete(client: AsyncOpenAI, request: ModelRequest) -> str:
    """Send one request and return the non-empty text of the first choice.

    Timeouts and retries are bounded by the client (see get_openai_client);
    whatever still fails is raised as TransportError.
    """
    kwargs: dict = {}
    if request.response_format is not None:
        kwargs["response_format"] = request.response_format

    started = time.monotonic()
    try:
        response = await client.chat.completions.create(
            model=settings.openai_model,
            messages=request.messages,
            temperature=request.temperature,
            **settings.max_tokens_param(request.max_tokens),
            **kwargs,
        )
    except openai.APITimeoutError as e:
        raise RequestTimeout(f"{request.operation} timed out after {settings.request_timeout_seconds:.0f}s") from e
    except openai.APIError as e:
        raise TransportError(f"{request.operation} failed: {e}") from e

    logger.debug(
        "%s completed with %s in %.2fs", request.operation, settings.openai_model, time.monotonic() - started
    )

    if not response.choices:
        raise MalformedResponse(f"{request.operation}: the AI returned no choices")
    content = response.choices[0].message.content or ""
    if not content.strip():
        raise MalformedResponse(f"{request.operation}: the AI returned an empty response")
    return content
