"""OpenAI LLM provider implementation."""

from __future__ import annotations

import json
import logging
from typing import Any

import requests
from openai import OpenAI, OpenAIError

from kesy_oracle.llm.provider import LLMProvider, TextResult
from kesy_oracle.oracle.config import LLMConfig
from kesy_oracle.oracle.consensus.aggregation import ERROR_SENTINEL

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI API provider implementation.

    The SDK manages its own connection pool, so the node's session is unused;
    each node still issues its own request.
    """

    def __init__(self, config: LLMConfig, client: OpenAI | None = None) -> None:
        """Initialize the OpenAI provider.

        Args:
            config: LLM configuration.
            client: Optional pre-built client (tests).

        Raises:
            ValueError: If API key is not provided.
        """
        if client is None and not config.openai_api_key:
            raise ValueError("OpenAI API key is required")

        self.config = config
        self.client = client or OpenAI(
            api_key=config.openai_api_key, timeout=config.timeout_seconds
        )
        self.model = config.openai_model

        logger.info("OpenAI provider initialized", extra={"model": self.model})

    def request(
        self,
        http: requests.Session,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout: float = 30.0,
    ) -> str:
        _ = http
        temp = temperature if temperature is not None else self.config.temperature
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens or self.config.max_output_tokens,
                temperature=temp,
                timeout=timeout,
            )
        except OpenAIError as e:
            logger.warning("OpenAI request failed", extra={"error": str(e)})
            return ERROR_SENTINEL
        return response.model_dump_json()

    def extract_text(self, raw: str) -> TextResult:
        try:
            data: Any = json.loads(raw)
            content = data["choices"][0]["message"]["content"]
        except (TypeError, ValueError, KeyError, IndexError):
            return TextResult.failure("Response has no completion text")

        if not isinstance(content, str) or not content:
            return TextResult.failure("Response has no completion text")
        return TextResult.success(content)
