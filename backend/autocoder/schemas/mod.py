from pydantic import BaseModel

from autocoder.schemas.unit import GeneratedUnit, Mod, UnitSummary


class ModSummary(BaseModel):
    name: str
    units: list[UnitSummary] = []

    @classmethod
    def from_mod(cls, mod: Mod) -> "ModSummary":
        return cls(name=mod.name, units=[summarize_unit(u) for u in mod.units])


def summarize_unit(unit: GeneratedUnit) -> UnitSummary:
    return UnitSummary(
        id=unit.id,
        unit_name=unit.unit_name,
        image_names=[a.name for a in unit.images],
        sound_names=[a.name for a in unit.sounds],
    )


class IniValidateRequest(BaseModel):
    content: str = ""
