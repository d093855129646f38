"""AI client factory for the synchronous extraction providers."""
import logging
from typing import Any, Optional

from hevy_importer.config import settings


logger = logging.getLogger(__name__)

# Default client timeout; large workbooks can take a while to structure
DEFAULT_TIMEOUT = 120.0


class AIClientFactory:
    """Factory for creating AI SDK clients."""

    @staticmethod
    def create_openai_client(
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Any:
        """
        Create an OpenAI client.

        Args:
            api_key: Explicit key; defaults to OPENAI_API_KEY from settings
            timeout: Client timeout in seconds

        Returns:
            OpenAI client instance

        Raises:
            ValueError: If no API key is configured
        """
        import openai

        api_key = api_key or settings.OPENAI_API_KEY
        if not api_key:
            raise ValueError("OpenAI API key not configured. Set OPENAI_API_KEY environment variable.")

        logger.debug("Creating OpenAI client")
        return openai.OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    @staticmethod
    def create_anthropic_client(
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Any:
        """
        Create an Anthropic client.

        Args:
            api_key: Explicit key; defaults to ANTHROPIC_API_KEY from settings
            timeout: Client timeout in seconds

        Returns:
            Anthropic client instance

        Raises:
            ValueError: If no API key is configured
        """
        from anthropic import Anthropic

        api_key = api_key or settings.ANTHROPIC_API_KEY
        if not api_key:
            raise ValueError("Anthropic API key not configured. Set ANTHROPIC_API_KEY environment variable.")

        logger.debug("Creating Anthropic client")
        # SDK retries are disabled; submissions go through our own retry policy
        return Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
