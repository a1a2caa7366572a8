"""
LLM Provider implementations.
"""

import logging
from typing import Optional, Union

from config.settings import Settings

from .bedrock import BedrockProvider
from .openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

Provider = Union[BedrockProvider, OpenAIProvider]


def create_provider(settings: Settings) -> Optional[Provider]:
    """Build the configured provider, or None when LLM enhancement is off."""
    if settings.is_bedrock:
        return BedrockProvider(
            model_id=settings.bedrock_llm_model_id,
            region=settings.aws_region,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            timeout=settings.summary_timeout_seconds,
        )
    if settings.is_openai:
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model_id=settings.openai_llm_model,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            timeout=settings.summary_timeout_seconds,
        )
    logger.info(f"No LLM provider configured (LLM_PROVIDER={settings.llm_provider})")
    return None


__all__ = ["BedrockProvider", "OpenAIProvider", "Provider", "create_provider"]
