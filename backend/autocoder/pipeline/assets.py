"""Sprite and sound payloads for a generated unit."""
import asyncio
import logging

import openai
from openai import AsyncOpenAI

from autocoder.config import settings
from autocoder.pipeline.errors import MalformedResponse, RequestTimeout, TransportError
from autocoder.pipeline.rules import SPRITE_STYLE
from autocoder.schemas.pipeline import Attachment, ImagePrompt
from autocoder.schemas.unit import AssetFile
from autocoder.utils.data_url import to_data_url

logger = logging.getLogger(__name__)


async def generate_image(client: AsyncOpenAI, request: ImagePrompt) -> AssetFile:
    try:
        response = await client.images.generate(
            model=settings.openai_image_model,
            prompt=SPRITE_STYLE.format(prompt=request.prompt),
            n=1,
            size=settings.image_size,
            **settings.image_format_param(),
        )
    except openai.APITimeoutError as e:
        raise RequestTimeout(f"Image generation for {request.image_name} timed out") from e
    except openai.APIError as e:
        raise TransportError(f"Image generation for {request.image_name} failed: {e}") from e

    payload = response.data[0].b64_json if response.data else None
    if not payload:
        raise MalformedResponse(f"No image was returned for {request.image_name}")
    return AssetFile(name=request.image_name, data_url=to_data_url("image/png", payload))


async def synthesize_images(client: AsyncOpenAI, requests: list[ImagePrompt]) -> list[AssetFile]:
    """Generate every sprite concurrently, stored under its declared filename.

    All-or-nothing: the first failure cancels the remaining requests and is
    re-raised, so a unit never carries a partial sprite set.
    """
    if not requests:
        return []
    logger.info("Generating %d sprite(s): %s", len(requests), [r.image_name for r in requests])
    tasks = [asyncio.ensure_future(generate_image(client, r)) for r in requests]
    try:
        return list(await asyncio.gather(*tasks))
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def fan_out_sounds(sound_names: list[str], audio: Attachment | None) -> list[AssetFile]:
    """Reuse the one supplied clip under every declared sound filename."""
    if audio is None:
        return []
    return [AssetFile(name=name, data_url=audio.data_url) for name in sound_names]
