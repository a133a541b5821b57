"""Prompt templates for the AI helpers, loaded once from a JSON file."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prompts:
    """Templates keyed by operation; placeholders are ``str.format`` named fields."""

    check_prompt_content: str
    recommend_title: str
    recommend_content: str
    recommend_tags: str
    recommend_blog: str
    summarize: str
    refine: str
    validate: str


def load_prompts(path: str | Path) -> Prompts:
    """
    Read the template table from ``path``.

    Raises RuntimeError when the file is missing a template, so a broken
    deployment fails at startup instead of on the first AI request.
    """
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)

    missing = [f.name for f in fields(Prompts) if not raw.get(f.name)]
    if missing:
        raise RuntimeError(f"Prompt file {path} is missing templates: {', '.join(missing)}")

    logger.info(f"Loaded {len(fields(Prompts))} prompt templates from {path}")
    return Prompts(**{f.name: raw[f.name] for f in fields(Prompts)})
