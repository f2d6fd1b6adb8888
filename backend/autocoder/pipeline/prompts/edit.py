from autocoder.pipeline.rules import EDIT, RuleContext, render_instructions

EDIT_SYSTEM = """You are a Rusted Warfare modding expert. You apply a user's requested change to an existing unit .ini file while keeping the file valid. You answer with ONLY the raw, complete, updated .ini file: no explanations, no markdown."""


def build_edit_prompt(current_code: str, instruction: str, context: RuleContext) -> str:
    return f"""Current code:
```ini
{current_code}
```

User's edit instruction: "{instruction}"

Apply the change, then re-check the whole file against these rules:
{render_instructions(EDIT, context)}

Return only the raw ini code."""
