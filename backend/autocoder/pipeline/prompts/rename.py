RENAME_SYSTEM = """You name Rusted Warfare mods. A mod name is also its folder name: PascalCase or snake_case, letters, digits and underscores only, no spaces. You answer with ONLY the name."""


def build_rename_prompt(suggestion: str, current_name: str) -> str:
    return f"""The user wants to rename their Rusted Warfare mod.
Current name: "{current_name}"
User's suggestion: "{suggestion}"

Generate a new, creative mod name based on the suggestion. Return ONLY the new name as a single token."""
