"""Tests for the single model call and the correction pass."""
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from autocoder.config import settings
from autocoder.pipeline.corrector import correct_ini
from autocoder.pipeline.errors import MalformedResponse, RequestTimeout, TransportError
from autocoder.pipeline.llm import complete
from autocoder.pipeline.prompt_builder import edit_request, generate_from_text_request
from fakes import completion, make_client

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


@pytest.mark.asyncio
async def test_complete_returns_first_choice():
    client = make_client("[core]\nname: a")
    assert await complete(client, edit_request("x", "y")) == "[core]\nname: a"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == settings.openai_model
    assert "response_format" not in kwargs


@pytest.mark.asyncio
async def test_structured_request_passes_response_format():
    client = make_client("{}")
    request = generate_from_text_request("tank")
    await complete(client, request)
    assert client.chat.completions.create.call_args.kwargs["response_format"] is request.response_format


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", None])
async def test_empty_reply_is_malformed(content):
    client = make_client(completion(content))
    with pytest.raises(MalformedResponse):
        await complete(client, edit_request("x", "y"))


@pytest.mark.asyncio
async def test_timeout_and_transport_errors_are_mapped():
    client = make_client()
    client.chat.completions.create = AsyncMock(side_effect=openai.APITimeoutError(request=_REQUEST))
    with pytest.raises(RequestTimeout):
        await complete(client, edit_request("x", "y"))

    client.chat.completions.create = AsyncMock(side_effect=openai.APIConnectionError(request=_REQUEST))
    with pytest.raises(TransportError):
        await complete(client, edit_request("x", "y"))


@pytest.mark.asyncio
async def test_corrector_returns_corrected_text():
    client = make_client("```ini\n[core]\nname: a\nprice: 10\n```")
    assert await correct_ini(client, "[core]\nname: a", ["scout"]) == "[core]\nname: a\nprice: 10"
    prompt = client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
    assert "[scout]" in prompt


@pytest.mark.asyncio
async def test_corrector_keeps_original_on_unusable_reply():
    client = make_client("   ")
    assert await correct_ini(client, "[core]\nname: a") == "[core]\nname: a"


@pytest.mark.asyncio
async def test_corrector_propagates_transport_errors():
    client = make_client()
    client.chat.completions.create = AsyncMock(side_effect=openai.APIConnectionError(request=_REQUEST))
    with pytest.raises(TransportError):
        await correct_ini(client, "[core]\nname: a")
