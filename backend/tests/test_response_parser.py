"""Tests for decoding model replies."""
import json

import pytest

from autocoder.pipeline.errors import MalformedResponse
from autocoder.pipeline.response_parser import (
    parse,
    parse_ini_text,
    parse_mod_name,
    parse_unit_draft,
    strip_code_fences,
)
from autocoder.pipeline.rules import CORRECT, GENERATE_FROM_IMAGE, GENERATE_FROM_TEXT, RENAME_MOD

DRAFT = {
    "unit_name": "light_tank",
    "ini_content": "[core]\nname: light_tank",
    "image_prompts": [{"image_name": "light_tank.png", "prompt": "small tank"}],
    "sound_file_names": [],
}


class TestUnitDraft:
    def test_plain_and_fenced_json(self):
        raw = json.dumps(DRAFT)
        assert parse_unit_draft(raw).unit_name == "light_tank"
        fenced = parse_unit_draft(f"```json\n{raw}\n```")
        assert fenced.image_prompts[0].image_name == "light_tank.png"

    def test_invalid_json(self):
        with pytest.raises(MalformedResponse, match="invalid JSON"):
            parse_unit_draft("{not json")

    def test_not_an_object(self):
        with pytest.raises(MalformedResponse):
            parse_unit_draft("[1, 2]")

    def test_image_prompts_required_for_text_generation(self):
        data = {k: v for k, v in DRAFT.items() if k != "image_prompts"}
        with pytest.raises(MalformedResponse, match="image_prompts"):
            parse_unit_draft(json.dumps(data), GENERATE_FROM_TEXT)
        assert parse_unit_draft(json.dumps(data), GENERATE_FROM_IMAGE).image_prompts == []

    def test_missing_field_is_named(self):
        data = {k: v for k, v in DRAFT.items() if k != "ini_content"}
        with pytest.raises(MalformedResponse, match="ini_content"):
            parse_unit_draft(json.dumps(data))


def test_strip_code_fences():
    assert strip_code_fences("```ini\n[core]\nname: a\n```") == "[core]\nname: a"
    assert strip_code_fences("  [core]\n") == "[core]"


def test_parse_ini_text_rejects_empty():
    with pytest.raises(MalformedResponse):
        parse_ini_text("```\n```")


class TestModName:
    def test_takes_first_line_and_strips_unsafe_characters(self):
        assert parse_mod_name("  Iron_Legion!!\nBecause it sounds cool") == "Iron_Legion"
        assert parse_mod_name("Iron Legion") == "IronLegion"
        assert parse_mod_name('"SteelStorm"') == "SteelStorm"

    def test_nothing_usable(self):
        with pytest.raises(MalformedResponse):
            parse_mod_name("!!! ???")


def test_dispatch_by_operation():
    assert parse("[core]\nname: a", CORRECT) == "[core]\nname: a"
    assert parse("SteelStorm", RENAME_MOD) == "SteelStorm"
    with pytest.raises(ValueError):
        parse("x", "unknown")
