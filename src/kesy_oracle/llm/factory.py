"""Factory for creating text-generation providers."""

import logging

from kesy_oracle.llm.gemini_provider import GeminiProvider
from kesy_oracle.llm.openai_provider import OpenAIProvider
from kesy_oracle.llm.provider import LLMProvider
from kesy_oracle.oracle.config import LLMConfig

logger = logging.getLogger(__name__)


class LLMFactory:
    """Factory for creating LLM provider instances."""

    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """Create an LLM provider based on configuration.

        Args:
            config: LLM configuration specifying the provider.

        Returns:
            Configured LLM provider instance.

        Raises:
            ValueError: If provider type is not supported.
        """
        logger.info(f"Creating LLM provider: {config.provider}")

        if config.provider == "gemini":
            return GeminiProvider(config)
        elif config.provider == "openai":
            return OpenAIProvider(config)
        else:
            raise ValueError(f"Unsupported LLM provider: {config.provider}")
