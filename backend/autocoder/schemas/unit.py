from pydantic import BaseModel


class AssetFile(BaseModel):
    name: str
    data_url: str


class IniFile(BaseModel):
    name: str
    content: str


class GeneratedUnit(BaseModel):
    id: str
    unit_name: str
    ini_file: IniFile
    images: list[AssetFile] = []
    sounds: list[AssetFile] = []


class Mod(BaseModel):
    name: str
    units: list[GeneratedUnit] = []


class UnitSummary(BaseModel):
    id: str
    unit_name: str
    image_names: list[str] = []
    sound_names: list[str] = []
