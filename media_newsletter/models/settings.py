"""Settings and configuration management."""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from media_newsletter.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class ProviderConfig(BaseModel):
    """Connection details for one LLM backend."""

    provider: str = Field("", description="Provider id: openai, anthropic or custom")
    api_key: Optional[str] = Field(None, description="API key")
    model: str = Field("gpt-4o-mini", description="Model name")
    base_url: str = Field("https://api.openai.com/v1", description="API base URL")
    timeout: float = Field(100.0, description="Request timeout in seconds")

    def is_configured(self) -> bool:
        """True when both a provider id and an API key are present."""
        return bool(self.provider and self.provider.strip()) and bool(
            self.api_key and self.api_key.strip()
        )


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # AI Processing
    ai_provider: str = Field("OpenAI", description="openai, anthropic or custom")
    ai_api_key: Optional[str] = Field(None, description="LLM API key")
    ai_model: str = Field("gpt-4o-mini", description="LLM model name")
    ai_base_url: str = Field(
        "https://api.openai.com/v1", description="LLM API base URL"
    )
    ai_timeout: float = Field(
        100.0, ge=5.0, le=300.0, description="LLM request timeout in seconds"
    )

    # Newsletter Content
    newsletter_tone: str = Field("friendly", description="Writing tone")
    enable_personalization: bool = Field(
        True, description="Ask the model for personal recommendations"
    )
    custom_prompt_additions: str = Field(
        "", description="Extra instructions appended to the newsletter prompt"
    )
    max_items_per_newsletter: int = Field(
        10, ge=1, le=500, description="Maximum items in one newsletter"
    )
    days_back_to_scan: int = Field(
        7, ge=1, le=365, description="How many days of additions to include"
    )
    included_libraries: Optional[str] = Field(
        None, description="Comma-separated library names (empty means all)"
    )
    content_types: str = Field(
        "Movie,Series,MusicAlbum", description="Comma-separated item types"
    )
    include_posters: bool = Field(True, description="Show poster images")
    poster_hosting_type: str = Field(
        "JellyfinAPI", description="Poster hosting mode: JellyfinAPI or Imgur"
    )

    # Media Catalog
    jellyfin_url: Optional[str] = Field(None, description="Jellyfin server URL")
    jellyfin_api_key: Optional[str] = Field(None, description="Jellyfin API key")
    jellyfin_timeout: float = Field(
        15.0, ge=3.0, le=120.0, description="Jellyfin request timeout in seconds"
    )

    # Email Delivery
    smtp_server: Optional[str] = Field(None, description="SMTP host")
    smtp_port: int = Field(587, description="SMTP port")
    smtp_username: Optional[str] = Field(None, description="SMTP username")
    smtp_password: Optional[str] = Field(None, description="SMTP password")
    smtp_use_ssl: bool = Field(True, description="Use TLS for SMTP")
    sender_email: Optional[str] = Field(None, description="From address")
    sender_name: str = Field("Jellyfin AI Newsletter", description="From name")
    recipients: Optional[str] = Field(
        None, description="Comma-separated recipient addresses"
    )
    email_subject_template: str = Field(
        "🎬 Your Weekly Jellyfin Update - {ItemCount} New Items",
        description="Subject line, {ItemCount} is replaced with the item count",
    )

    # Scheduling
    enable_scheduled_task: bool = Field(True, description="Run on schedule")
    schedule_hour: int = Field(9, ge=0, le=23, description="Daily run hour (UTC)")
    celery_broker_url: str = Field(
        "redis://localhost:6379/0", description="Celery broker URL"
    )

    # Application Settings
    debug: bool = Field(False, description="Debug mode")
    log_level: str = Field("INFO", description="Log level")

    @property
    def recipient_list(self) -> List[str]:
        return _split_csv(self.recipients)

    @property
    def library_list(self) -> List[str]:
        return _split_csv(self.included_libraries)

    @property
    def content_type_list(self) -> List[str]:
        return _split_csv(self.content_types)

    def provider_config(self) -> ProviderConfig:
        """Build the LLM connection details from these settings."""
        return ProviderConfig(
            provider=self.ai_provider or "",
            api_key=self.ai_api_key,
            model=self.ai_model,
            base_url=self.ai_base_url,
            timeout=self.ai_timeout,
        )

    def subject_for(self, item_count: int) -> str:
        """Fill the {ItemCount} token of the subject template."""
        return self.email_subject_template.replace("{ItemCount}", str(item_count))

    def require_valid(self) -> "Settings":
        """Raise ConfigurationError listing every problem with these settings."""
        from media_newsletter.models.validation import validate_settings

        result = validate_settings(self)
        if not result.is_valid:
            logger.error(f"Configuration invalid: {len(result.errors)} problem(s)")
            raise ConfigurationError(result.errors)
        return self
