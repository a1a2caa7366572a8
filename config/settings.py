"""
Centralized configuration for the lead triage engine.

All settings are loaded from environment variables via .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    # Scoring
    default_profile: str = Field(default="legacy", env="DEFAULT_PROFILE")  # legacy | alternate

    # AWS / Bedrock
    aws_region: str = Field(default="us-east-1", env="AWS_REGION")
    bedrock_llm_model_id: str = Field(
        default="us.anthropic.claude-sonnet-4-20250514-v1:0", env="BEDROCK_LLM_MODEL_ID"
    )

    # OpenAI
    openai_api_key: Optional[str] = Field(default=None, env="OPENAI_API_KEY")
    openai_llm_model: str = Field(default="gpt-4o-mini", env="OPENAI_LLM_MODEL")

    # LLM summary enhancement
    llm_provider: str = Field(default="none", env="LLM_PROVIDER")  # none | bedrock | openai
    max_tokens: int = Field(default=600, env="MAX_TOKENS")
    temperature: float = Field(default=0.3, env="TEMPERATURE")
    enhance_summaries: bool = Field(default=False, env="ENHANCE_SUMMARIES")
    summary_timeout_seconds: float = Field(default=8.0, env="SUMMARY_TIMEOUT_SECONDS")

    # Re-scoring after a write
    rescore_attempts: int = Field(default=2, env="RESCORE_ATTEMPTS")
    rescore_backoff_seconds: float = Field(default=2.0, env="RESCORE_BACKOFF_SECONDS")

    # API
    api_host: str = Field(default="0.0.0.0", env="API_HOST")
    api_port: int = Field(default=8000, env="API_PORT")
    api_title: str = Field(default="Lead Triage Engine API", env="API_TITLE")
    api_version: str = Field(default="1.0.0", env="API_VERSION")
    api_key: Optional[str] = Field(default=None, env="API_KEY")
    cors_origins: str = Field(default="*", env="CORS_ORIGINS")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    debug: bool = Field(default=False, env="DEBUG")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_bedrock(self) -> bool:
        return self.llm_provider.lower() == "bedrock"

    @property
    def is_openai(self) -> bool:
        return self.llm_provider.lower() == "openai"

    @property
    def llm_enabled(self) -> bool:
        return self.is_bedrock or self.is_openai

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
