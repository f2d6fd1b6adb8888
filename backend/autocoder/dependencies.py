import asyncio
import uuid
from collections import defaultdict
from collections.abc import AsyncGenerator

from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from autocoder.config import settings
from autocoder.db.engine import async_session_factory

# One operation at a time per workspace mod
workspace_locks: dict[uuid.UUID, asyncio.Lock] = defaultdict(asyncio.Lock)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session


def get_openai_client() -> AsyncOpenAI:
    kwargs: dict = {
        "api_key": settings.openai_api_key,
        "timeout": settings.request_timeout_seconds,
        "max_retries": settings.max_retries,
    }
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    return AsyncOpenAI(**kwargs)
