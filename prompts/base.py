"""Prompt loading utilities for TrendLine AI features."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from string import Template
from typing import Any, Mapping

__all__ = ["PromptTemplate", "load_prompt", "get_prompt_text", "render_prompt"]


@dataclass(frozen=True)
class PromptTemplate:
    """A prompt template with its resolved text content.

    Placeholders use ``$name`` syntax so JSON examples inside the template
    need no escaping.
    """

    name: str
    content: str

    def render(self, values: Mapping[str, Any]) -> str:
        return Template(self.content).substitute(values)


PROMPTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=32)
def load_prompt(name: str) -> PromptTemplate:
    """Load a prompt template by stem name (without extension)."""

    path = PROMPTS_DIR / f"{name}.txt"
    if not path.exists():
        raise FileNotFoundError(f"Prompt template not found: {path}")

    content = path.read_text(encoding="utf-8").strip()
    return PromptTemplate(name=name, content=content)


def get_prompt_text(name: str) -> str:
    """Return raw prompt text for convenience."""

    return load_prompt(name).content


def render_prompt(name: str, values: Mapping[str, Any]) -> str:
    """Load ``name`` and substitute every placeholder from ``values``."""

    return load_prompt(name).render(values)
