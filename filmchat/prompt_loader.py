from __future__ import annotations

from pathlib import Path
from typing import Dict


class PromptLibrary:
    """Loads system prompt templates from a directory and fills their placeholders."""

    def __init__(self, prompts_dir: Path) -> None:
        self._prompts_dir = prompts_dir
        self._cache: Dict[str, str] = {}

    def load(self, name: str) -> str:
        """Purpose: Read a prompt template once and keep it cached.
        Inputs/Outputs: Input is a file name under prompts_dir; output is the template text.
        Side Effects / State: Populates the in-memory cache.
        Dependencies: Uses read_prompt for BOM-tolerant decoding.
        Failure Modes: Missing files raise FileNotFoundError to the caller.
        If Removed: The generative tier cannot build its system prompts.
        Testing Notes: Point prompts_dir at tmp_path and verify caching.
        """
        if name not in self._cache:
            self._cache[name] = read_prompt(self._prompts_dir / name)
        return self._cache[name]

    def render(self, template: str, /, **values: object) -> str:
        return self.load(template).format(**values).strip()


def read_prompt(prompt_path: Path) -> str:
    """Read a prompt file as UTF-8, stripping a BOM and tolerating invalid bytes."""
    try:
        return prompt_path.read_text(encoding="utf-8").lstrip("\ufeff")
    except UnicodeDecodeError:
        raw = prompt_path.read_bytes()
        return raw.decode("utf-8", errors="ignore").lstrip("\ufeff")
