"""
Versioned prompt loader: reads prompts from app/prompts/{version}/{component}.yaml.
Use PROMPT_VERSION (default v1) to select version. Templates use <<NAME>> placeholders.
"""
from pathlib import Path

import yaml

_PROMPTS_DIR = Path(__file__).resolve().parent


def load_prompts(
    component: str,
    version: str | None = None,
) -> dict[str, str]:
    """Load prompt templates for a component. Returns dict with keys "system" and "user" where present.
    Why available: Keeps the minutes and caption wording out of code so it can change without a deploy of new logic."""
    if version is None:
        from app.core.config import settings
        version = settings.prompt_version

    path = _PROMPTS_DIR / version / f"{component}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Prompt file not found: {path}")

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    out: dict[str, str] = {}
    for key in ("system", "user"):
        val = data.get(key)
        if val is not None:
            out[key] = val.strip() if isinstance(val, str) else str(val).strip()
    return out


def render(template: str, /, **values: str) -> str:
    """Fill <<NAME>> placeholders (NAME is the upper-cased keyword). Unknown placeholders are left as-is."""
    for name, value in values.items():
        template = template.replace(f"<<{name.upper()}>>", value)
    return template


def build_messages(component: str, version: str | None = None, **values: str) -> list[dict[str, str]]:
    """Return chat messages [system, user] for a component with placeholders filled. Raises ValueError if either prompt is missing."""
    prompts = load_prompts(component, version=version)
    missing = [k for k in ("system", "user") if k not in prompts]
    if missing:
        raise ValueError(f"Component {component} has no {'/'.join(missing)} prompt in version {version}")
    return [
        {"role": "system", "content": render(prompts["system"], **values)},
        {"role": "user", "content": render(prompts["user"], **values)},
    ]
