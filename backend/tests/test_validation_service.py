"""Tests for the syntax validator and the asset closure check."""
from autocoder.schemas.unit import AssetFile, GeneratedUnit, IniFile
from autocoder.services.validation_service import (
    EMPTY_ERROR,
    MISSING_CORE,
    MISSING_CORE_NAME,
    MISSING_GRAPHICS,
    MISSING_GRAPHICS_IMAGE,
    check_asset_closure,
    validate_ini,
)

VALID = """# light tank
[core]
name: light_tank
price: 300

[graphics]
image: light_tank.png
"""


def _unit(content: str, images=(), sounds=()) -> GeneratedUnit:
    return GeneratedUnit(
        id="u1",
        unit_name="light_tank",
        ini_file=IniFile(name="light_tank.ini", content=content),
        images=[AssetFile(name=n, data_url="data:image/png;base64,AA==") for n in images],
        sounds=[AssetFile(name=n, data_url="data:audio/ogg;base64,AA==") for n in sounds],
    )


class TestValidateIni:
    def test_valid_file(self):
        result = validate_ini(VALID)
        assert result.is_valid is True
        assert result.error is None

    def test_empty_and_whitespace_only(self):
        for content in ("", "   \n\t\n", None):
            result = validate_ini(content)
            assert result.is_valid is False
            assert result.error == EMPTY_ERROR
            assert result.error_kind == "empty"

    def test_reports_first_bad_line_one_based(self):
        result = validate_ini("[core]\nname: tank\nthis line is wrong\nalso wrong")
        assert result.is_valid is False
        assert result.error_kind == "syntax"
        assert result.line == 3
        assert result.error == (
            "Invalid syntax on line 3. Expected 'key: value' format, but found: \"this line is wrong\""
        )

    def test_comments_and_blank_lines_are_skipped(self):
        content = "# header\n\n[core]\n  # indented comment\nname: a\n[graphics]\nimage: a.png"
        assert validate_ini(content).is_valid is True

    def test_missing_core(self):
        result = validate_ini("[graphics]\nimage: a.png")
        assert result.error == MISSING_CORE
        assert result.error_kind == "structure"

    def test_core_without_name(self):
        assert validate_ini("[core]\nprice: 1\n[graphics]\nimage: a.png").error == MISSING_CORE_NAME

    def test_name_in_other_section_does_not_count(self):
        content = "[core]\nprice: 1\n[turret_1]\nname: x\n[graphics]\nimage: a.png"
        assert validate_ini(content).error == MISSING_CORE_NAME

    def test_missing_graphics(self):
        assert validate_ini("[core]\nname: a").error == MISSING_GRAPHICS

    def test_graphics_without_image(self):
        assert validate_ini("[core]\nname: a\n[graphics]\nshadow: AUTO").error == MISSING_GRAPHICS_IMAGE

    def test_syntax_error_wins_over_structure(self):
        result = validate_ini("garbage")
        assert result.error_kind == "syntax"
        assert result.line == 1

    def test_crlf_content(self):
        assert validate_ini(VALID.replace("\n", "\r\n")).is_valid is True


class TestAssetClosure:
    def test_closed_unit(self):
        report = check_asset_closure(_unit(VALID, images=["light_tank.png"]))
        assert report.closed is True

    def test_dangling_and_orphan_files(self):
        content = VALID + "\n[turret_1]\nimage: turret.png\n[attack]\nattackSound: boom.ogg\n"
        report = check_asset_closure(_unit(content, images=["light_tank.png", "spare.png"], sounds=["hum.wav"]))
        assert report.closed is False
        assert report.dangling_images == ["turret.png"]
        assert report.orphan_images == ["spare.png"]
        assert report.dangling_sounds == ["boom.ogg"]
        assert report.orphan_sounds == ["hum.wav"]


def test_header_glued_to_key_is_a_syntax_error():
    result = validate_ini("[core]name: x\n[graphics]\nimage: x.png")
    assert result.error_kind == "syntax"
    assert result.line == 1
    assert '"[core]name: x"' in result.error
