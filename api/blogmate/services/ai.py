"""
AI authoring helpers.

``AIHelper`` turns each operation into one prompt from the template table and
hands it to a text model. The model is anything with ``generate(prompt) -> str``:
``GeminiModel`` in production, a scripted fake in the tests.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Protocol

from pydantic import BaseModel, Field, ValidationError

from ..errors import BlogMateError, InsufficientResults, Internal, OffTopic, ParseFailed
from ..prompts import Prompts

logger = logging.getLogger(__name__)

RECOMMENDATION_COUNT = 5

_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*|\s*```\s*$")


class TextModel(Protocol):
    def generate(self, prompt: str) -> str: ...


class BlogRecommendation(BaseModel):
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)


class ValidationResult(BaseModel):
    valid: bool
    feedback: str | None = None


def _is_affirmative(answer: str) -> bool:
    return answer.strip().strip(".!\"'").lower().startswith("yes")


def _join_tags(tags: list[str] | None) -> str:
    return ", ".join(tags or [])


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, e.g. ```json ... ```."""
    return _FENCE.sub("", text.strip())


class AIHelper:
    def __init__(self, model: TextModel, prompts: Prompts) -> None:
        self.model = model
        self.prompts = prompts

    def _generate(self, prompt: str) -> str:
        try:
            text = self.model.generate(prompt)
        except BlogMateError:
            raise
        except Exception as e:
            logger.error(f"AI model call failed: {e}", exc_info=True)
            raise Internal("no response from the ai model")

        if not text or not text.strip():
            raise Internal("no response from the ai model")
        return text.strip()

    def _check_topic(self, text: str) -> None:
        answer = self._generate(self.prompts.check_prompt_content.format(prompt=text))
        if not _is_affirmative(answer):
            logger.info("AI request rejected by the topical guard")
            raise OffTopic()

    def chat(self, prompt: str) -> str:
        self._check_topic(prompt)
        return self._generate(prompt)

    def recommend_title(self, content: str, tags: list[str] | None = None) -> str:
        self._check_topic(content)
        text = self._generate(
            self.prompts.recommend_title.format(content=content, tags=_join_tags(tags))
        )
        for line in text.splitlines():
            line = line.strip().strip('"')
            if line:
                return line
        raise Internal("no response from the ai model")

    def recommend_content(self, title: str, tags: list[str] | None = None) -> str:
        self._check_topic(title)
        return self._generate(
            self.prompts.recommend_content.format(title=title, tags=_join_tags(tags))
        )

    def recommend_tags(self, title: str, content: str) -> list[str]:
        self._check_topic(f"{title}\n{content}")
        text = self._generate(self.prompts.recommend_tags.format(title=title, content=content))

        tags: list[str] = []
        for tag in text.replace("\n", ",").split(","):
            tag = tag.strip().lstrip("#").strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    def recommend_blogs(
        self, title: str, content: str, tags: list[str] | None = None
    ) -> list[BlogRecommendation]:
        """
        Ask for related blogs as a JSON array and return the first five.

        Raises ParseFailed when the answer is not a JSON array of blogs and
        InsufficientResults when it holds fewer than five.
        """
        text = self._generate(
            self.prompts.recommend_blog.format(title=title, content=content, tags=_join_tags(tags))
        )
        try:
            raw = json.loads(strip_code_fences(text))
        except json.JSONDecodeError as e:
            logger.warning(f"AI recommendation is not valid JSON: {e}")
            raise ParseFailed()
        if not isinstance(raw, list):
            raise ParseFailed("expected a list of recommendations")

        try:
            recommendations = [BlogRecommendation.model_validate(item) for item in raw]
        except ValidationError as e:
            logger.warning(f"AI recommendation has an unexpected shape: {e}")
            raise ParseFailed()

        if len(recommendations) < RECOMMENDATION_COUNT:
            raise InsufficientResults(
                f"expected {RECOMMENDATION_COUNT} recommendations, got {len(recommendations)}"
            )
        return recommendations[:RECOMMENDATION_COUNT]

    def summarize(self, data: str) -> str:
        return self._generate(self.prompts.summarize.format(data=data))

    def refine(self, content: str) -> str:
        return self._generate(self.prompts.refine.format(content=content))

    def validate(self, content: str) -> ValidationResult:
        answer = self._generate(self.prompts.validate.format(content=content))
        if _is_affirmative(answer):
            return ValidationResult(valid=True)
        return ValidationResult(valid=False, feedback=answer)
