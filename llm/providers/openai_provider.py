"""
OpenAI LLM Provider.
"""

import logging
from typing import Dict, List, Optional

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """
    OpenAI chat-completions provider.

    Used for optional summary enhancement only.
    """

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_id: str = DEFAULT_MODEL,
        max_tokens: int = 600,
        temperature: float = 0.3,
        timeout: Optional[float] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key, falls back to OPENAI_API_KEY
            model_id: Model ID
            max_tokens: Maximum tokens
            temperature: Generation temperature
            timeout: Client-side request timeout in seconds
        """
        client_kwargs = {"api_key": api_key} if api_key else {}
        if timeout:
            client_kwargs["timeout"] = timeout
        self._async_client = AsyncOpenAI(**client_kwargs)

        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature

        logger.info(f"OpenAI provider initialized: {model_id}")

    def _messages(self, prompt: str, system: Optional[str]) -> List[Dict[str, str]]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def agenerate(
        self,
        prompt: str,
        system: Optional[str] = None
    ) -> str:
        """Async generation using the OpenAI async client."""
        try:
            response = await self._async_client.chat.completions.create(
                model=self.model_id,
                messages=self._messages(prompt, system),
                max_tokens=self.max_tokens,
                temperature=self.temperature
            )
            return (response.choices[0].message.content or "").strip()

        except Exception as e:
            logger.error(f"OpenAI async generation failed: {e}")
            raise
