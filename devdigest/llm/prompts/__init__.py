"""
Prompt Management Module

Loads LLM prompts from text files next to this module so prompt wording can be
changed without touching code.
"""

from __future__ import annotations

import os
from pathlib import Path

PROMPTS_DIR = Path(__file__).parent

# Set DEVDIGEST_NEWSLETTER_PROMPT to try an alternate prompt file
NEWSLETTER_PROMPT_NAME = os.getenv("DEVDIGEST_NEWSLETTER_PROMPT", "newsletter_prompt")


class PromptLoader:
    """Load and cache prompt templates from files"""

    def __init__(self):
        self._cache: dict[str, str] = {}

    def load_prompt(self, prompt_name: str) -> str:
        """
        Load a prompt template from file.

        Args:
            prompt_name: Name of the prompt file (without .txt extension)

        Returns:
            Prompt template string

        Raises:
            FileNotFoundError: If the prompt file does not exist
        """
        if prompt_name not in self._cache:
            prompt_path = PROMPTS_DIR / f"{prompt_name}.txt"
            self._cache[prompt_name] = prompt_path.read_text(encoding="utf-8")
        return self._cache[prompt_name]


_loader = PromptLoader()


def get_newsletter_prompt(date: str, language: str = "English") -> str:
    """Newsletter body prompt with the cycle date and output language filled in."""
    return _loader.load_prompt(NEWSLETTER_PROMPT_NAME).format(date=date, language=language)
