"""Unit file rules shared by the prompt builder and the corrector.

Both the generation prompts and the correction checklist are rendered from
FORMAT_RULES, so the model is always asked to honor the same constraints that
the corrector later enforces.
"""
import re
from dataclasses import dataclass, field

UNIT_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9]*(?:_[a-z0-9]+)*$")
MOD_NAME_PATTERN = re.compile(r"^(?:[A-Z][A-Za-z0-9]*|[a-z][a-z0-9]*(?:_[a-z0-9]+)*)$")

MANDATORY_SECTIONS = ("core", "graphics", "movement")
ATTACK_SECTION = "attack"

CLASS_KEY = "class"
CLASS_MARKER = "CustomUnitMetadata"
MANDATORY_NUMERIC_CORE_KEYS = ("price", "radius", "maxHp", "buildSpeed", "techLevel")
CRASH_CRITICAL_CORE_KEYS = ("price", "radius")

MOVEMENT_TYPE_KEY = "movementType"
MOVEMENT_TYPES = (
    "NONE",
    "LAND",
    "AIR",
    "WATER",
    "HOVER",
    "BUILDING",
    "OVER_CLIFF",
    "OVER_CLIFF_WATER",
)

BUILDER_SECTION_PREFIX = "canBuild_"

IMAGE_EXTENSIONS = ("png", "jpg", "jpeg", "bmp", "gif")
SOUND_EXTENSIONS = ("ogg", "wav", "mp3")
SOUND_KEY_EXAMPLES = ("attackSound", "moveSound", "deathSound")

# key -> section it is documented under
KEY_PLACEMENT = {
    "maxHp": "core",
    "techLevel": "core",
    "turnSpeed": "core",
    "moveSpeed": "movement",
    "maxAttackRange": "attack",
    "turretTurnSpeed": "turret_...",
}

# (section, invalid form, valid form)
KEY_CORRECTIONS = (
    ("attack", "attackRange", "maxAttackRange"),
    ("attack", "attackEnabled: true", "canAttack: true"),
    ("graphics", "frame_width / frame_height", "total_frames"),
    ("graphics", "teamColorsUseHue", "teamColoringMode"),
)

# invented flag -> official counterpart
INVENTED_FLAGS = {
    "is: air": "isAir: true in [core] plus movementType: AIR in [movement]",
    "is: unique": "buildLimit: 1 in [core]",
    "is: boss": "a label in displayText, e.g. 'displayText: My Unit (Boss)'",
}

# invalid section -> valid replacement
INVALID_SECTIONS = {
    "build": "canBuild_<anyName>",
    "armour_...": "shield_<anyName>",
}

DEPRECATED_FORMS = {
    "action_#_...": "[action_NAME] sections",
    "canBuild_#_name": "[canBuild_NAME] sections",
}

SPRITE_STYLE = (
    "2D pixel art, Rusted Warfare game sprite, {prompt}, "
    "strict top-down orthographic view, black background"
)

GENERATE_FROM_TEXT = "generate-from-text"
GENERATE_FROM_IMAGE = "generate-from-image"
EDIT = "edit"
RENAME_MOD = "rename-mod"
CORRECT = "correct"

GENERATION_OPERATIONS = frozenset({GENERATE_FROM_TEXT, GENERATE_FROM_IMAGE})
UNIT_OPERATIONS = frozenset({GENERATE_FROM_TEXT, GENERATE_FROM_IMAGE, EDIT})


def _quoted(values) -> str:
    return ", ".join(f"'{v}'" for v in values)


def _bracketed(values) -> str:
    return ", ".join(f"[{v}]" for v in values)


@dataclass(frozen=True)
class RuleContext:
    """Per-operation facts the rule text depends on."""

    existing_units: tuple[str, ...] = ()
    audio_attached: bool = False
    unit_name: str | None = None

    @property
    def build_targets(self) -> str:
        return ", ".join(self.existing_units) or "None"

    def values(self) -> dict:
        return {
            "unit_name": self.unit_name or "<unit_name>",
            "build_targets": self.build_targets,
            "sections": _bracketed(MANDATORY_SECTIONS),
            "attack": ATTACK_SECTION,
            "class_key": CLASS_KEY,
            "class_marker": CLASS_MARKER,
            "numeric_keys": _quoted(MANDATORY_NUMERIC_CORE_KEYS),
            "crash_keys": " or ".join(f"'{k}'" for k in CRASH_CRITICAL_CORE_KEYS),
            "movement_key": MOVEMENT_TYPE_KEY,
            "movement_types": ", ".join(MOVEMENT_TYPES),
            "builder_prefix": BUILDER_SECTION_PREFIX,
            "sound_keys": _quoted(SOUND_KEY_EXAMPLES),
            "placement": "; ".join(f"'{k}' belongs in [{s}]" for k, s in KEY_PLACEMENT.items()),
            "key_corrections": "; ".join(f"in [{s}] use '{good}' instead of '{bad}'" for s, bad, good in KEY_CORRECTIONS),
            "invented_flags": "; ".join(f"'{bad}' must become {good}" for bad, good in INVENTED_FLAGS.items()),
            "invalid_sections": "; ".join(f"[{bad}] must become [{good}]" for bad, good in INVALID_SECTIONS.items()),
            "deprecated": "; ".join(f"'{bad}' must become {good}" for bad, good in DEPRECATED_FORMS.items()),
        }


@dataclass(frozen=True)
class FormatRule:
    """One constraint, phrased for generation and for correction.

    `instruction` is what the generating model is told for the operations in
    `operations`; `check` is the imperative checklist item for the corrector.
    Either may be None when the rule only applies to one side.
    `audio_instruction` replaces `instruction` when an audio clip is attached.
    """

    title: str
    instruction: str | None
    check: str | None
    audio_instruction: str | None = None
    operations: frozenset = field(default=UNIT_OPERATIONS)

    def render_instruction(self, context: RuleContext) -> str | None:
        text = self.instruction
        if context.audio_attached and self.audio_instruction:
            text = self.audio_instruction
        return text.format(**context.values()) if text else None

    def render_check(self, context: RuleContext) -> str | None:
        return self.check.format(**context.values()) if self.check else None


FORMAT_RULES: tuple[FormatRule, ...] = (
    FormatRule(
        title="Unit name",
        instruction=(
            "The unit name MUST be lowercase_snake_case: a single token, no spaces, no capitals "
            "(e.g. 'heavy_tank'). It is used for the folder, the .ini filename and the [core] 'name' value."
        ),
        check="The [core] 'name' value MUST be lowercase_snake_case. Do not change it otherwise.",
    ),
    FormatRule(
        title="Mandatory sections",
        instruction="Every unit file MUST contain {sections}. A unit that attacks also needs [{attack}].",
        check="Make sure {sections} exist. Add [{attack}] if the unit has weapons or turrets.",
    ),
    FormatRule(
        title="Mandatory [core] keys",
        instruction=(
            "[core] MUST contain 'name' with the EXACT unit name, the pair '{class_key}: {class_marker}', "
            "and the numeric keys {numeric_keys}. The game WILL crash without {crash_keys}."
        ),
        check=(
            "[core] MUST have 'name', '{class_key}: {class_marker}' (any other value is wrong) "
            "and numeric values for {numeric_keys}. Add any that are missing."
        ),
    ),
    FormatRule(
        title="Image file consistency",
        instruction=(
            "The main sprite MUST be referenced as 'image: {unit_name}.png' in [graphics]. For EVERY image "
            "filename written anywhere in the file ([graphics], [projectile_...], [effect_...], turrets) there "
            "MUST be an 'image_prompts' entry whose 'image_name' is an exact, case-sensitive match, and every "
            "'image_prompts' entry MUST be referenced in the file. If a part has no described visual, omit its "
            "image key or use a safe default like 'image_wreak: NONE' or 'image_shadow: AUTO'."
        ),
        check=(
            "Never rename, remove or invent image filenames. [graphics] must keep its 'image' key. "
            "Projectiles and effects without an existing image file must not reference one."
        ),
        operations=frozenset({GENERATE_FROM_TEXT}),
    ),
    FormatRule(
        title="Image file references",
        instruction=(
            "The main sprite MUST be referenced as 'image: {unit_name}.png' in [graphics]. Do NOT introduce any "
            "other image filename: omit image keys for parts without an existing file, or use a safe default "
            "like 'image_wreak: NONE' or 'image_shadow: AUTO'."
        ),
        check=None,
        operations=frozenset({GENERATE_FROM_IMAGE, EDIT}),
    ),
    FormatRule(
        title="Sound file consistency",
        instruction=(
            "No audio clip was provided: you are STRICTLY PROHIBITED from adding ANY sound key "
            "(e.g. {sound_keys}) or sound filename, and 'sound_file_names' MUST be empty. "
            "The game has no built-in sounds."
        ),
        audio_instruction=(
            "An audio clip is attached. Derive one or more descriptive sound filenames from it "
            "(e.g. 'laser_fire.ogg'), list them ALL in 'sound_file_names', and reference EVERY one of them "
            "with a sound key (e.g. {sound_keys}). Never reference a sound file that is not in that list."
        ),
        check="Do not add any new sound key or sound filename. Keep existing sound references exactly as they are.",
        operations=GENERATION_OPERATIONS,
    ),
    FormatRule(
        title="Sound file references",
        instruction=(
            "Do not add any new sound key (e.g. {sound_keys}) or sound filename. "
            "The game has no built-in sounds."
        ),
        check=None,
        operations=frozenset({EDIT}),
    ),
    FormatRule(
        title="Movement type",
        instruction="'{movement_key}' in [movement] MUST be exactly one of: {movement_types}.",
        check="'{movement_key}' in [movement] MUST be one of: {movement_types}. Replace anything else (e.g. OVER_LAND).",
    ),
    FormatRule(
        title="Builders",
        instruction=(
            "A builder uses one or more [{builder_prefix}<anyName>] sections listing units as 'name: unit_1, unit_2'. "
            "[build] does not exist. The ONLY unit names you may list are: [{build_targets}]. If that list is "
            "'None', the unit cannot be a builder. 'techLevel' belongs in [core], never in [{builder_prefix}...]."
        ),
        check=(
            "Builder sections MUST be named [{builder_prefix}...]; rename any [build] section. Their 'name' key "
            "may only list: [{build_targets}]. Remove any other unit names."
        ),
    ),
    FormatRule(
        title="Value types",
        instruction=(
            "Every value MUST have the type the engine expects: 'price' and 'maxHp' are numbers, flags like "
            "'canAttack' are 'true' or 'false', and 'drawType' in [projectile_...] is an integer (not 'BEAM')."
        ),
        check="Fix every value with the wrong type: numbers for stats, true/false for flags, integers for 'drawType'.",
    ),
    FormatRule(
        title="Key placement",
        instruction="Place every key in its documented section: {placement}.",
        check="Move misplaced keys to their documented sections: {placement}.",
    ),
    FormatRule(
        title="Invalid keys and sections",
        instruction="NEVER invent keys or sections. {invented_flags}. {invalid_sections}. {key_corrections}.",
        check="Replace invented keys and sections: {invented_flags}. {invalid_sections}. {key_corrections}.",
    ),
    FormatRule(
        title="Deprecated syntax",
        instruction=None,
        check="Modernize deprecated syntax: {deprecated}.",
    ),
    FormatRule(
        title="Formatting",
        instruction=(
            "Every section header MUST be on its own line and every 'key: value' pair on its own line. "
            "Do not wrap the file in markdown fences."
        ),
        check="Put every section header and every 'key: value' pair on its own line.",
    ),
)


def _numbered(items: list[tuple[str, str]]) -> str:
    return "\n".join(f"{i}. **{title}:** {text}" for i, (title, text) in enumerate(items, start=1))


def render_instructions(operation: str, context: RuleContext) -> str:
    """Render the rules that apply to a generation or edit operation."""
    items = []
    for rule in FORMAT_RULES:
        if operation not in rule.operations:
            continue
        text = rule.render_instruction(context)
        if text:
            items.append((rule.title, text))
    return _numbered(items)


def render_checklist(context: RuleContext) -> str:
    """Render every rule as an imperative checklist for the corrector."""
    items = []
    for rule in FORMAT_RULES:
        text = rule.render_check(context)
        if text:
            items.append((rule.title, text))
    return _numbered(items)


def is_valid_unit_name(name: str) -> bool:
    return bool(UNIT_NAME_PATTERN.match(name or ""))


def is_valid_mod_name(name: str) -> bool:
    return bool(MOD_NAME_PATTERN.match(name or ""))
