# SPDX-License-Identifier: AGPL-3.0-only

"""
Configuration for the sentiment analysis system.

Hand-tuned constants of the normalizer live here as named settings so they
can be overridden from the environment (prefix ``SENTIMENT_``).
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class NormalizerConfig(BaseSettings):
    """Configuration settings for sentiment normalization and analysis."""

    # Normalizer settings
    score_divergence_threshold: int = Field(default=10, description="Max points the model's overall_score may diverge from the calculated score")
    max_report_urls: int = Field(default=10, description="Citation budget: distinct URLs across the whole report")
    title_context_chars: int = Field(default=100, description="Characters of preceding context used to guess a URL title")
    default_locale: str = Field(default="he", description="Locale used for placeholder texts")

    # AI service settings
    ai_service: str = Field(default="openai", description="AI service provider")
    ai_timeout: int = Field(default=120, description="AI service timeout in seconds")
    max_retries: int = Field(default=3, description="Attempts per LLM call")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model name")
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI API base URL")
    web_search_enabled: bool = Field(default=True, description="Expose the web_search tool to the model")

    class Config:
        env_prefix = "SENTIMENT_"
        case_sensitive = False

    def get_normalizer_config(self) -> dict:
        """Get the normalizer constants."""
        return {
            "score_divergence_threshold": self.score_divergence_threshold,
            "max_report_urls": self.max_report_urls,
            "title_context_chars": self.title_context_chars,
            "default_locale": self.default_locale,
        }

    def get_ai_config(self) -> dict:
        """Get AI service configuration."""
        return {
            "service": self.ai_service,
            "timeout": self.ai_timeout,
            "max_retries": self.max_retries,
            "openai": {
                "api_key": self.openai_api_key,
                "model": self.openai_model,
                "base_url": self.openai_base_url,
            },
            "web_search": self.web_search_enabled,
        }

    def validate_ai_config(self) -> bool:
        """Validate AI configuration."""
        if self.ai_service == "openai" and not self.openai_api_key:
            return False
        return True


# Global configuration instance
config = NormalizerConfig()
