"""Tests for chat turns with persistence replaced by in-memory fakes."""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from autocoder.pipeline import orchestrator
from autocoder.pipeline.errors import NoModYet
from autocoder.schemas.chat import ChatEditRequest, ChatSendRequest
from autocoder.schemas.unit import GeneratedUnit, IniFile, Mod
from autocoder.services.mod_state import ModState
from fakes import make_client

WORKSPACE = "00000000-0000-0000-0000-000000000001"

DRAFT = json.dumps(
    {
        "unit_name": "scout",
        "ini_content": "[core]\nname: scout\n[graphics]\nimage: scout.png",
        "image_prompts": [{"image_name": "scout.png", "prompt": "tiny buggy"}],
        "sound_file_names": [],
    }
)


def _events(stream: list[str]) -> list[tuple[str, dict]]:
    parsed = []
    for raw in stream:
        head, data = raw.strip().split("\n", 1)
        parsed.append((head.removeprefix("event: "), json.loads(data.removeprefix("data: "))))
    return parsed


@pytest.fixture
def store(monkeypatch):
    """Replace the database services used by the orchestrator."""
    fake = SimpleNamespace(state=ModState(), messages=[])

    async def add_message(db, thread_id, role, content, image_url=None, audio_url=None):
        fake.messages.append((role, content, image_url))

    monkeypatch.setattr(orchestrator, "get_or_create_thread", AsyncMock(return_value=SimpleNamespace(id=1)))
    monkeypatch.setattr(orchestrator, "add_message", add_message)
    monkeypatch.setattr(orchestrator, "load_mod_state", AsyncMock(side_effect=lambda db, wid: fake.state))
    fake.save_appended_unit = AsyncMock()
    fake.save_latest_unit = AsyncMock()
    fake.save_mod_name = AsyncMock()
    monkeypatch.setattr(orchestrator, "save_appended_unit", fake.save_appended_unit)
    monkeypatch.setattr(orchestrator, "save_latest_unit", fake.save_latest_unit)
    monkeypatch.setattr(orchestrator, "save_mod_name", fake.save_mod_name)
    return fake


async def _collect(gen) -> list[tuple[str, dict]]:
    return _events([event async for event in gen])


@pytest.mark.asyncio
async def test_generation_appends_unit_and_streams_events(store):
    client = make_client(DRAFT)
    events = await _collect(
        orchestrator.run_generation(client, None, WORKSPACE, ChatSendRequest(message="a scout", auto_fix=False))
    )

    names = [name for name, _ in events]
    assert names == ["stage_change", "unit", "stage_change", "validation", "token", "done"]
    assert events[1][1]["unit_name"] == "scout"
    assert events[3][1] == {"is_valid": True, "error": None}
    assert events[-1][1]["unit_id"] == store.state.latest_unit.id
    assert store.state.unit_names == ("scout",)
    store.save_appended_unit.assert_awaited_once()
    assert store.messages[0] == ("user", "a scout", None)
    assert store.messages[-1][0] == "ai"


@pytest.mark.asyncio
async def test_failed_generation_leaves_mod_untouched(store):
    client = make_client("not json at all")
    events = await _collect(
        orchestrator.run_generation(client, None, WORKSPACE, ChatSendRequest(message="a scout", auto_fix=False))
    )

    assert [name for name, _ in events] == ["stage_change", "error", "done"]
    assert events[-1][1] == {"unit_id": None}
    assert store.state.mod is None
    store.save_appended_unit.assert_not_awaited()
    assert store.messages[-1][1].startswith("Sorry, I encountered an error.")


@pytest.mark.asyncio
async def test_edit_without_units_reports_error(store):
    client = make_client()
    events = await _collect(orchestrator.run_edit(client, None, WORKSPACE, ChatEditRequest(instruction="more hp")))

    assert [name for name, _ in events] == ["error", "done"]
    client.chat.completions.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_edit_replaces_only_the_latest_unit(store):
    first = GeneratedUnit(id="a", unit_name="scout", ini_file=IniFile(name="scout.ini", content="[core]\nname: scout"))
    second = GeneratedUnit(id="b", unit_name="tank", ini_file=IniFile(name="tank.ini", content="[core]\nname: tank"))
    store.state = ModState(Mod(name="Army", units=[first, second]))
    client = make_client("[core]\nname: tank\nmaxHp: 900")

    events = await _collect(
        orchestrator.run_edit(client, None, WORKSPACE, ChatEditRequest(instruction="more hp", auto_fix=False))
    )

    assert events[-1] == ("done", {"unit_id": "b"})
    assert store.state.mod.units[0] == first
    assert store.state.latest_unit.ini_file.content.endswith("maxHp: 900")
    assert store.messages[0][1] == "Can you modify the code for 'tank'? more hp"
    # only earlier units may be build targets of the edited one
    prompt = client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
    assert "[scout]" in prompt
    assert "[scout, tank]" not in prompt


@pytest.mark.asyncio
async def test_rename(store):
    store.state = ModState(Mod(name="MyRustedMod", units=[]))
    client = make_client("SteelStorm")
    mod = await orchestrator.run_rename(client, None, WORKSPACE, "steel and storms")

    assert mod.name == "SteelStorm"
    store.save_mod_name.assert_awaited_once()
    assert store.messages[-1] == ("ai", "Done! I've renamed the mod to 'SteelStorm'.", None)


@pytest.mark.asyncio
async def test_rename_before_first_unit(store):
    client = make_client()
    with pytest.raises(NoModYet):
        await orchestrator.run_rename(client, None, WORKSPACE, "anything")
    client.chat.completions.create.assert_not_awaited()
    store.save_mod_name.assert_not_awaited()
