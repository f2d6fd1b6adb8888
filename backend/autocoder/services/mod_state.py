from autocoder.config import settings
from autocoder.pipeline.errors import InvalidName, NoModYet, NoUnitToEdit
from autocoder.pipeline.rules import is_valid_mod_name
from autocoder.schemas.unit import GeneratedUnit, Mod


class ModState:
    """The in-progress mod of one workspace, or None before the first unit.

    Units only ever grow by append. Edits always address the latest unit,
    `units[-1]`; earlier units are never touched.
    """

    def __init__(self, mod: Mod | None = None, default_name: str | None = None):
        self._mod = mod
        self._default_name = default_name or settings.default_mod_name

    @property
    def mod(self) -> Mod | None:
        return self._mod

    @property
    def latest_unit(self) -> GeneratedUnit | None:
        if self._mod is None or not self._mod.units:
            return None
        return self._mod.units[-1]

    @property
    def unit_names(self) -> tuple[str, ...]:
        if self._mod is None:
            return ()
        return tuple(u.unit_name for u in self._mod.units)

    def append_unit(self, unit: GeneratedUnit) -> Mod:
        mod = self._mod or Mod(name=self._default_name, units=[])
        self._mod = mod.model_copy(update={"units": [*mod.units, unit]})
        return self._mod

    def replace_latest_unit(self, updated: GeneratedUnit) -> Mod:
        if self._mod is None or not self._mod.units:
            raise NoUnitToEdit()
        self._mod = self._mod.model_copy(update={"units": [*self._mod.units[:-1], updated]})
        return self._mod

    def rename_mod(self, new_name: str) -> Mod:
        if self._mod is None:
            raise NoModYet()
        if not is_valid_mod_name(new_name):
            raise InvalidName(f"'{new_name}' is not a valid mod folder name")
        self._mod = self._mod.model_copy(update={"name": new_name})
        return self._mod
