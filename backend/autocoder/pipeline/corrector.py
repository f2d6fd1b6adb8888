import logging
from collections.abc import Sequence

from openai import AsyncOpenAI

from autocoder.pipeline.errors import MalformedResponse
from autocoder.pipeline.llm import complete
from autocoder.pipeline.prompt_builder import correction_request
from autocoder.pipeline.response_parser import parse_ini_text

logger = logging.getLogger(__name__)


async def correct_ini(
    client: AsyncOpenAI,
    content: str,
    allowed_build_targets: Sequence[str] = (),
) -> str:
    """Second, low-temperature pass that rewrites the file toward the rules.

    Best effort: an unusable reply keeps the uncorrected text. Transport
    failures propagate like any other model call.
    """
    request = correction_request(content, tuple(allowed_build_targets))
    try:
        raw = await complete(client, request)
        return parse_ini_text(raw)
    except MalformedResponse as e:
        logger.warning("Correction pass returned nothing usable, keeping original: %s", e)
        return content
