"""Gemini REST provider implementation."""

from __future__ import annotations

import json
import logging
from typing import Any

import requests

from kesy_oracle.llm.provider import LLMProvider, TextResult
from kesy_oracle.oracle.config import LLMConfig
from kesy_oracle.oracle.consensus.aggregation import ERROR_SENTINEL

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """Google Gemini ``generateContent`` over plain HTTP."""

    def __init__(self, config: LLMConfig) -> None:
        """Initialize the Gemini provider.

        Args:
            config: LLM configuration.

        Raises:
            ValueError: If API key is not provided.
        """
        if not config.gemini_api_key:
            raise ValueError("Gemini API key is required")

        self.config = config
        base = config.gemini_base_url.rstrip("/")
        self.url = f"{base}/models/{config.gemini_model}:generateContent"

        logger.info("Gemini provider initialized", extra={"model": config.gemini_model})

    def request(
        self,
        http: requests.Session,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout: float = 30.0,
    ) -> str:
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature if temperature is not None else self.config.temperature,
                "maxOutputTokens": max_tokens or self.config.max_output_tokens,
            },
        }
        try:
            resp = http.post(
                self.url,
                json=body,
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.config.gemini_api_key,
                },
                timeout=timeout,
            )
        except requests.RequestException as e:
            logger.warning("Gemini request failed", extra={"error": str(e)})
            return ERROR_SENTINEL
        return resp.text

    def extract_text(self, raw: str) -> TextResult:
        try:
            data: Any = json.loads(raw)
        except (TypeError, ValueError):
            return TextResult.failure("Unparsable response body")

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            error = data.get("error") if isinstance(data, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            return TextResult.failure(str(message or "Response has no candidate text"))

        if not isinstance(text, str) or not text:
            return TextResult.failure("Response has no candidate text")
        return TextResult.success(text)
