"""Folder-structured zip archive of a mod, ready to drop into the game's mods directory."""
import base64
import io
import logging
import zipfile

from autocoder.schemas.unit import Mod
from autocoder.utils.data_url import decode_data_url
from autocoder.utils.ini_lines import is_safe_asset_name

logger = logging.getLogger(__name__)

# 1x1 transparent PNG used as the mod icon
PLACEHOLDER_ICON = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)

MOD_DESCRIPTION = "A custom mod generated by the Rusted Warfare Auto-Coder."


def build_mod_info(mod: Mod) -> str:
    return f"""[core]
name: {mod.name}
description: {MOD_DESCRIPTION}

[graphics]
icon: icon.png"""


def archive_name(mod: Mod) -> str:
    return f"{mod.name}.zip"


def build_archive(mod: Mod) -> bytes:
    """One top-level folder per mod and one subfolder per unit, files verbatim."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        root = mod.name
        archive.writestr(f"{root}/mod-info.ini", build_mod_info(mod))
        archive.writestr(f"{root}/icon.png", PLACEHOLDER_ICON)

        for unit in mod.units:
            folder = f"{root}/{unit.unit_name}"
            archive.writestr(f"{folder}/{unit.ini_file.name}", unit.ini_file.content)
            for asset in [*unit.images, *unit.sounds]:
                if not is_safe_asset_name(asset.name):
                    logger.warning("Skipping asset outside the unit folder %s/%s", unit.unit_name, asset.name)
                    continue
                try:
                    payload = decode_data_url(asset.data_url)
                except ValueError:
                    logger.warning("Skipping undecodable asset %s/%s", unit.unit_name, asset.name)
                    continue
                archive.writestr(f"{folder}/{asset.name}", payload)
    return buffer.getvalue()
