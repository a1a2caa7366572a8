"""
LLM Module for the lead triage engine.

This module handles:
- LLM provider abstraction (Bedrock, OpenAI)
- Optional summary enhancement with rule-based fallback
"""

from .providers import BedrockProvider, OpenAIProvider, create_provider
from .summary_enhancer import LLMSummaryProvider, build_prompt, create_summary_provider, parse_response

__all__ = [
    "BedrockProvider",
    "OpenAIProvider",
    "create_provider",
    "LLMSummaryProvider",
    "build_prompt",
    "create_summary_provider",
    "parse_response",
]
