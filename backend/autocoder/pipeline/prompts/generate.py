from autocoder.pipeline.rules import (
    GENERATE_FROM_IMAGE,
    GENERATE_FROM_TEXT,
    RuleContext,
    render_instructions,
)

GENERATION_SYSTEM = """You are a world-class game designer and Rusted Warfare modding expert. You translate a user's idea into a complete, creative and fully functional unit package: one unit .ini file plus descriptions of every sprite it needs.

DESIGN PHILOSOPHY:
1. Creative interpretation: give the unit a clear battlefield role. Use [action_...], [effect_...], [animation_...] and cosmetic parts ([arm_#], [leg_#]) where they make the unit memorable.
2. Game balance: high damage should be paid for with low health, slow speed or a high price. Use short '#' comments to explain complex sections.
3. Completeness: the unit must work out of the box. Every file it references must be described.

You always answer with a single JSON object matching the requested schema."""

IMAGE_GENERATION_SYSTEM = """You are a world-class game designer and Rusted Warfare modding expert. The user supplies a picture of a unit and a text prompt. Infer the unit's function, armament and abilities from its visual design, combine that with the user's request, and write a complete, balanced Rusted Warfare .ini file for it. Use short '#' comments to explain complex design choices.

You always answer with a single JSON object matching the requested schema."""

AUDIO_HANDLING = """AUDIO CLIP:
An audio clip is attached. Listen to it and decide how the unit uses it (weapon fire, engine hum, death cry...). The single clip is reused for every sound filename you declare, so name each file for its role (e.g. 'laser_fire.ogg')."""

AUDIO_UNPLAYABLE = """AUDIO CLIP:
An audio clip is attached but its format cannot be played to you. The single clip is reused for every sound filename you declare, so give the unit the sounds its role calls for and name each file for that role (e.g. 'cannon_fire.ogg')."""

FINAL_CHECK = """Before answering, verify:
1. [core] 'name' is identical to 'unit_name' and [core] has every mandatory key.
2. Every section header and every 'key: value' pair is on its own line.
3. [graphics] 'image' points to '<unit_name>.png'.
4. Every image filename in the file is mirrored by an 'image_prompts' entry, and vice versa.
5. Every sound filename in the file is listed in 'sound_file_names', and vice versa."""


def build_generation_prompt(user_prompt: str, context: RuleContext, audio_playable: bool = True) -> str:
    audio_section = ""
    if context.audio_attached:
        audio_section = f"\n{AUDIO_HANDLING if audio_playable else AUDIO_UNPLAYABLE}\n"
    return f"""User's request: "{user_prompt}"
{audio_section}
NON-NEGOTIABLE RULES (violations crash the game):
{render_instructions(GENERATE_FROM_TEXT, context)}

Sprite style: every sprite is 2D pixel art from a strict top-down orthographic perspective on a black or transparent background. Write each 'prompt' as a visual description of that one sprite.

{FINAL_CHECK}

Now generate the JSON object for this unit."""


def build_image_generation_prompt(user_prompt: str, context: RuleContext) -> str:
    return f"""User's request: "{user_prompt}"

The attached picture IS the unit's main sprite and will be saved as '<unit_name>.png'.

NON-NEGOTIABLE RULES (violations crash the game):
{render_instructions(GENERATE_FROM_IMAGE, context)}

Return ONLY the JSON object conforming to the schema."""
