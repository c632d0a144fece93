"""LLM package initialization."""

from kesy_oracle.llm.factory import LLMFactory
from kesy_oracle.llm.provider import LLMProvider, TextResult

__all__ = [
    "LLMFactory",
    "LLMProvider",
    "TextResult",
]
