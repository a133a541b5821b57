"""Google Gemini text model."""

from __future__ import annotations

import logging

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..errors import AITimeout

logger = logging.getLogger(__name__)


class GeminiModel:
    """
    Thin wrapper over ``genai.GenerativeModel``.

    Every request carries ``timeout`` seconds as its deadline; hitting it
    raises AITimeout and is not retried.
    """

    def __init__(self, api_key: str | None, model_name: str, timeout: float) -> None:
        if api_key:
            genai.configure(api_key=api_key)
        else:
            logger.warning("GEMINI_API_KEY not configured - AI requests will fail")
        self.model_name = model_name
        self.timeout = timeout
        self._model = genai.GenerativeModel(model_name)

    def generate(self, prompt: str) -> str:
        try:
            response = self._model.generate_content(
                prompt, request_options={"timeout": self.timeout}
            )
        except google_exceptions.DeadlineExceeded:
            logger.warning(f"Gemini ({self.model_name}) did not answer within {self.timeout}s")
            raise AITimeout()
        return response.text
