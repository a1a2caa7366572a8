"""
AWS Bedrock LLM Provider.
"""

import asyncio
import json
import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class BedrockProvider:
    """
    AWS Bedrock provider for Claude models.

    Bedrock has no native async client; ``agenerate`` runs the blocking call
    in a worker thread so it can be awaited and cancelled by a timeout.
    """

    DEFAULT_MODEL = "us.anthropic.claude-sonnet-4-20250514-v1:0"

    def __init__(
        self,
        model_id: str = DEFAULT_MODEL,
        region: str = "us-east-1",
        max_tokens: int = 600,
        temperature: float = 0.3,
        timeout: Optional[float] = None,
    ):
        """
        Initialize Bedrock provider.

        Args:
            model_id: Bedrock model ID
            region: AWS region
            max_tokens: Maximum tokens for response
            temperature: Generation temperature
            timeout: Read timeout in seconds
        """
        self.model_id = model_id
        self.region = region
        self.max_tokens = max_tokens
        self.temperature = temperature

        config = Config(read_timeout=timeout, retries={"max_attempts": 1}) if timeout else None
        self._client = boto3.client("bedrock-runtime", region_name=region, config=config)
        logger.info(f"Bedrock provider initialized: {model_id} in {region}")

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        """
        Generate response from prompt.

        Args:
            prompt: User prompt
            system: System prompt

        Returns:
            Generated response
        """
        try:
            body = {
                "anthropic_version": "bedrock-2023-05-31",
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
                "messages": [
                    {
                        "role": "user",
                        "content": [{"type": "text", "text": prompt}]
                    }
                ]
            }

            if system:
                body["system"] = system

            response = self._client.invoke_model(
                modelId=self.model_id,
                body=json.dumps(body),
                contentType="application/json",
                accept="application/json",
            )

            response_body = json.loads(response["body"].read())

            if "content" in response_body and response_body["content"]:
                return response_body["content"][0]["text"].strip()

            logger.warning("Empty response from Bedrock")
            return ""

        except ClientError as e:
            logger.error(f"Bedrock API error: {e}")
            raise
        except Exception as e:
            logger.error(f"Bedrock generation failed: {e}")
            raise

    async def agenerate(
        self,
        prompt: str,
        system: Optional[str] = None
    ) -> str:
        """Async wrapper for generate."""
        return await asyncio.to_thread(self.generate, prompt, system)
