from __future__ import annotations

import re
from pathlib import Path
from typing import List

from .errors import ConfigurationError

PLACEHOLDER_PATTERN = re.compile(r"<<([A-Z_]+)>>")


def load_prompt(prompts_dir: Path, name: str) -> str:
    """Purpose: Read a named prompt template from the prompts directory.
    Inputs/Outputs: Inputs are the directory and file name; output is the template text.
    Side Effects / State: Reads the filesystem once per call.
    Dependencies: Called by the Gemini client at construction time.
    Failure Modes: A missing or unreadable file raises ConfigurationError so the
        agent reports a settings problem instead of crashing mid-answer. Invalid
        UTF-8 bytes are dropped.
    If Removed: The answer prompt cannot be built and every LLM call fails.
    Testing Notes: A BOM at the start of the file must not reach the model.
    """
    # PROMPTS_DIR may point outside the package, so fail with a config error.
    path = Path(prompts_dir) / name
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ConfigurationError(f"Prompt template not found: {path}") from exc
    return raw.decode("utf-8", errors="ignore").lstrip("\ufeff")


def placeholders(template: str) -> List[str]:
    return sorted(set(PLACEHOLDER_PATTERN.findall(template)))


def render_prompt(template: str, **values: str) -> str:
    """Fill <<NAME>> placeholders; unknown placeholders are left as-is."""
    rendered = template
    for key, value in values.items():
        rendered = rendered.replace(f"<<{key.upper()}>>", value)
    return rendered
