from autocoder.pipeline.rules import RuleContext, render_checklist

CORRECTOR_SYSTEM = """You are a meticulous Rusted Warfare modding expert acting as a linter. Your SOLE purpose is to find every error in a unit .ini file and return a corrected, complete and functional version. Fix errors silently. Return ONLY the full corrected file as raw text: no comments about your changes, no explanations, no markdown."""


def build_correction_prompt(content: str, context: RuleContext) -> str:
    return f"""Code to analyze:
```ini
{content}
```

CRITICAL CHECKLIST (fix any violation):
{render_checklist(context)}

Return the complete, corrected ini file content as raw text."""
