"""End-to-end tests of the chat operations against a fake model."""
import json

import pytest

from autocoder.pipeline.errors import InvalidName, MalformedResponse
from autocoder.pipeline.generator import (
    edit_unit,
    generate_unit_from_image,
    generate_unit_from_text,
    suggest_mod_name,
)
from autocoder.schemas.unit import AssetFile, GeneratedUnit, IniFile
from autocoder.services.validation_service import check_asset_closure, validate_ini
from fakes import make_client

LIGHT_TANK_INI = """[core]
name: Light Tank
class: CustomUnitMetadata
price: 300
radius: 20
maxHp: 400
buildSpeed: 10
techLevel: 1

[graphics]
image: light_tank.png

[turret_1]
image: light_tank_turret.png

[attack]
canAttack: true
attackSound: cannon.ogg

[movement]
movementType: LAND
"""


def _draft(**overrides) -> str:
    data = {
        "unit_name": "LightTank",
        "ini_content": LIGHT_TANK_INI,
        "image_prompts": [
            {"image_name": "light_tank.png", "prompt": "small green tank"},
            {"image_name": "light_tank_wreck.png", "prompt": "burnt hull"},
        ],
        "sound_file_names": ["cannon.ogg"],
    }
    data.update(overrides)
    return json.dumps(data)


class TestGenerateFromText:
    @pytest.mark.asyncio
    async def test_unit_is_named_and_closed_without_correction(self):
        client = make_client(_draft())
        unit = await generate_unit_from_text(client, "a light tank", auto_fix=False)

        assert unit.unit_name == "light_tank"
        assert unit.ini_file.name == "light_tank.ini"
        assert "name: light_tank" in unit.ini_file.content
        assert "attackSound" not in unit.ini_file.content
        assert [a.name for a in unit.images] == ["light_tank.png", "light_tank_turret.png"]
        assert unit.sounds == []
        assert check_asset_closure(unit).closed
        assert validate_ini(unit.ini_file.content).is_valid
        assert client.chat.completions.create.await_count == 1

    @pytest.mark.asyncio
    async def test_correction_cannot_break_the_name(self):
        corrected = LIGHT_TANK_INI.replace("name: Light Tank", "name: LightTankV2")
        client = make_client(_draft(), corrected)
        unit = await generate_unit_from_text(client, "a light tank", auto_fix=True)

        assert client.chat.completions.create.await_count == 2
        assert "name: light_tank\n" in unit.ini_file.content
        assert "LightTankV2" not in unit.ini_file.content
        assert check_asset_closure(unit).closed

    @pytest.mark.asyncio
    async def test_audio_is_reused_for_every_referenced_sound(self, wav_attachment):
        client = make_client(_draft(sound_file_names=["cannon.ogg", "unused.wav"]))
        unit = await generate_unit_from_text(client, "a loud tank", audio=wav_attachment, auto_fix=False)

        assert [s.name for s in unit.sounds] == ["cannon.ogg"]
        assert unit.sounds[0].data_url == wav_attachment.data_url
        assert "attackSound: cannon.ogg" in unit.ini_file.content
        assert check_asset_closure(unit).closed

    @pytest.mark.asyncio
    async def test_name_is_unique_within_mod(self):
        client = make_client(_draft())
        unit = await generate_unit_from_text(client, "another", existing_units=("light_tank",), auto_fix=False)
        assert unit.unit_name == "light_tank_2"
        assert "name: light_tank_2" in unit.ini_file.content

    @pytest.mark.asyncio
    async def test_malformed_reply_builds_nothing(self):
        client = make_client("this is not json")
        with pytest.raises(MalformedResponse):
            await generate_unit_from_text(client, "a light tank")
        client.images.generate.assert_not_awaited()


class TestGenerateFromImage:
    @pytest.mark.asyncio
    async def test_supplied_picture_is_the_main_sprite(self, png_attachment):
        ini = "[core]\nname: walker\n\n[graphics]\nimage: uploaded.png\n\n[movement]\nmovementType: LAND"
        client = make_client(json.dumps({"unit_name": "walker", "ini_content": ini}))
        unit = await generate_unit_from_image(client, "make it walk", png_attachment, auto_fix=False)

        assert unit.images == [AssetFile(name="walker.png", data_url=png_attachment.data_url)]
        assert "image: walker.png" in unit.ini_file.content
        assert check_asset_closure(unit).closed
        client.images.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_extra_images_are_synthesized(self, png_attachment):
        ini = "[core]\nname: walker\n[graphics]\nimage: walker.png\n[projectile_1]\nimage: walker_shell.png"
        client = make_client(json.dumps({"unit_name": "walker", "ini_content": ini}))
        unit = await generate_unit_from_image(client, "x", png_attachment, auto_fix=False)

        assert [a.name for a in unit.images] == ["walker.png", "walker_shell.png"]
        assert client.images.generate.await_count == 1


class TestEdit:
    @pytest.mark.asyncio
    async def test_edit_rewrites_ini_and_keeps_assets(self):
        unit = GeneratedUnit(
            id="abc",
            unit_name="scout",
            ini_file=IniFile(name="scout.ini", content="[core]\nname: scout\n[graphics]\nimage: scout.png"),
            images=[AssetFile(name="scout.png", data_url="data:image/png;base64,AA==")],
        )
        client = make_client("```\n[core]\nname: Scout Mk2\nmaxHp: 900\n[graphics]\nimage: scout.png\n```")
        edited = await edit_unit(client, unit, "more hp", existing_units=("tank",), auto_fix=False)

        assert edited.id == "abc"
        assert edited.unit_name == "scout"
        assert edited.images == unit.images
        assert edited.ini_file.content.startswith("[core]\nname: scout\nmaxHp: 900")
        assert unit.ini_file.content == "[core]\nname: scout\n[graphics]\nimage: scout.png"
        prompt = client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert "more hp" in prompt
        assert "[tank]" in prompt

    @pytest.mark.asyncio
    async def test_edit_cannot_reference_missing_files(self):
        unit = GeneratedUnit(
            id="abc",
            unit_name="scout",
            ini_file=IniFile(name="scout.ini", content="[core]\nname: scout\n[graphics]\nimage: scout.png"),
            images=[AssetFile(name="scout.png", data_url="data:image/png;base64,AA==")],
        )
        client = make_client(
            "```\n[core]\nname: scout\n[graphics]\nimage: scout.png\n"
            "[turret_1]\nimage: new_turret.png\n[attack]\nattackSound: boom.ogg\n```"
        )
        edited = await edit_unit(client, unit, "add a turret with a boom", auto_fix=False)

        assert check_asset_closure(edited).closed
        assert "new_turret.png" not in edited.ini_file.content
        assert "boom.ogg" not in edited.ini_file.content
        assert "image: scout.png" in edited.ini_file.content
        assert "[turret_1]" in edited.ini_file.content
        assert edited.images == unit.images
        assert client.images.generate.call_count == 0

    @pytest.mark.asyncio
    async def test_edit_restores_main_sprite_and_drops_unused_assets(self):
        unit = GeneratedUnit(
            id="abc",
            unit_name="light_tank",
            ini_file=IniFile(name="light_tank.ini", content=LIGHT_TANK_INI.replace("Light Tank", "light_tank")),
            images=[
                AssetFile(name="light_tank.png", data_url="data:image/png;base64,AA=="),
                AssetFile(name="light_tank_turret.png", data_url="data:image/png;base64,AA=="),
            ],
            sounds=[AssetFile(name="cannon.ogg", data_url="data:audio/ogg;base64,AA==")],
        )
        reply = (
            LIGHT_TANK_INI.replace("Light Tank", "light_tank")
            .replace("image: light_tank.png", "image: shiny_tank.png")
            .replace("attackSound: cannon.ogg\n", "")
        )
        edited = await edit_unit(make_client(f"```\n{reply}```"), unit, "make it shiny", auto_fix=False)

        assert "[graphics]\nimage: light_tank.png" in edited.ini_file.content
        assert "shiny_tank.png" not in edited.ini_file.content
        assert edited.sounds == []
        assert [a.name for a in edited.images] == ["light_tank.png", "light_tank_turret.png"]
        assert check_asset_closure(edited).closed


class TestSuggestModName:
    @pytest.mark.asyncio
    async def test_sanitized_name(self):
        client = make_client("Iron Legion!\n(a strong name)")
        assert await suggest_mod_name(client, "something metal", "MyRustedMod") == "IronLegion"

    @pytest.mark.asyncio
    async def test_invalid_name(self):
        client = make_client("iron-Legion")
        with pytest.raises(InvalidName):
            await suggest_mod_name(client, "iron", "MyRustedMod")
