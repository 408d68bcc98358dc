"""Modular system prompt for the research agent.

Prompt sections are stored as separate .txt files and composed in order;
set SYSTEM_PROMPT in env to override with a single custom prompt.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

# Order of prompt sections (filenames without .txt)
PROMPT_SECTION_ORDER = (
    "base",
    "tool_guide",
    "storage_policy",
    "goal",
)


def _prompts_dir() -> Path:
    return Path(__file__).resolve().parent


def _load_section(name: str) -> str:
    path = _prompts_dir() / f"{name}.txt"
    if not path.exists():
        logger.warning("Prompt section not found: %s", path)
        return ""
    return path.read_text(encoding="utf-8").strip()


def build_system_prompt(
    *,
    section_order: tuple[str, ...] | None = None,
    separator: str = "\n\n",
    memories_prefix: str = "/memories/",
) -> str:
    """Join the prompt sections in order.

    Args:
        section_order: Override default order of section names (without .txt).
        separator: String to join sections with.
        memories_prefix: Durable directory named in the storage policy.
    """
    order = section_order or PROMPT_SECTION_ORDER
    parts = [content for content in (_load_section(name) for name in order) if content]
    prompt = separator.join(parts)
    if memories_prefix != "/memories/":
        prompt = prompt.replace("/memories/", memories_prefix)
    return prompt


def get_system_prompt(override: str | None = None, memories_prefix: str = "/memories/") -> str:
    """Return the system prompt, stamped with today's date."""
    if override and override.strip():
        prompt = override.strip()
    else:
        prompt = build_system_prompt(memories_prefix=memories_prefix)
    today = datetime.now(timezone.utc).date().isoformat()
    return f"{prompt}\n\nToday's date is {today}."


__all__ = [
    "PROMPT_SECTION_ORDER",
    "build_system_prompt",
    "get_system_prompt",
]
