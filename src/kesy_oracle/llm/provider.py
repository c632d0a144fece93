"""Abstract base class for text-generation providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import requests


@dataclass(frozen=True, slots=True)
class TextResult:
    """Either generated text or the reason there is none."""

    text: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.text is not None

    @classmethod
    def success(cls, text: str) -> TextResult:
        return cls(text=text)

    @classmethod
    def failure(cls, error: str) -> TextResult:
        return cls(error=error)


class LLMProvider(ABC):
    """Abstract base class for text-generation providers.

    Generation is split in two so the raw response can be reduced across
    oracle nodes before anything is parsed:

    - :meth:`request` runs inside a node-local closure and returns the raw body
      (the error sentinel on transport failure, never an exception)
    - :meth:`extract_text` turns the agreed body into a :class:`TextResult`
    """

    @abstractmethod
    def request(
        self,
        http: requests.Session,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout: float = 30.0,
    ) -> str:
        """Send one prompt and return the raw response body.

        Args:
            http: The calling node's HTTP session.
            prompt: The input prompt.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.
            timeout: Per-request timeout in seconds.

        Returns:
            Raw response body, or the error sentinel.
        """

    @abstractmethod
    def extract_text(self, raw: str) -> TextResult:
        """Pull the generated text out of a raw response body.

        Must tolerate missing fields and unparsable bodies without raising.
        """
