"""Validation rules for newsletter settings."""

import re
from typing import List
from urllib.parse import urlparse

from media_newsletter.models.settings import Settings

_EMAIL_PATTERN = re.compile(r"^[^@\s<>]+@[^@\s<>]+\.[^@\s<>]+$")


class ValidationResult:
    """Collects validation errors."""

    def __init__(self) -> None:
        self._errors: List[str] = []

    @property
    def is_valid(self) -> bool:
        return not self._errors

    @property
    def errors(self) -> List[str]:
        return list(self._errors)

    def add_error(self, error: str) -> None:
        self._errors.append(error)

    def errors_as_string(self) -> str:
        return "\n".join(self._errors)


def is_valid_email(email: str) -> bool:
    if not email or not email.strip():
        return False
    return bool(_EMAIL_PATTERN.match(email))


def is_valid_url(url: str) -> bool:
    if not url or not url.strip():
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_api_key(api_key: str, provider: str) -> bool:
    """Check the key shape expected by each provider."""
    if not api_key or not api_key.strip():
        return False

    provider = (provider or "").lower()
    if provider == "openai":
        return api_key.startswith("sk-") and len(api_key) > 20
    if provider == "anthropic":
        return api_key.startswith("sk-ant-") and len(api_key) > 20
    if provider == "custom":
        return True
    return False


def validate_settings(settings: Settings) -> ValidationResult:
    """Validate everything a scheduled run needs."""
    result = ValidationResult()

    # AI configuration
    if not settings.ai_provider or not settings.ai_provider.strip():
        result.add_error("AI Provider is required")
    if not settings.ai_api_key or not settings.ai_api_key.strip():
        result.add_error("AI API Key is required")
    if not settings.ai_model or not settings.ai_model.strip():
        result.add_error("AI Model is required")
    if not is_valid_url(settings.ai_base_url):
        result.add_error("AI Base URL must be a valid URL")

    # SMTP configuration
    if not settings.smtp_server or not settings.smtp_server.strip():
        result.add_error("SMTP Server is required")
    if settings.smtp_port <= 0 or settings.smtp_port > 65535:
        result.add_error("SMTP Port must be between 1 and 65535")
    if not settings.smtp_username or not settings.smtp_username.strip():
        result.add_error("SMTP Username is required")
    if not settings.smtp_password or not settings.smtp_password.strip():
        result.add_error("SMTP Password is required")
    if not is_valid_email(settings.sender_email or ""):
        result.add_error("Sender Email must be a valid email address")

    # Recipients
    recipients = settings.recipient_list
    if not recipients:
        result.add_error("At least one email recipient is required")
    for recipient in recipients:
        if not is_valid_email(recipient):
            result.add_error(f"Invalid email address: {recipient}")

    # Scan window
    if settings.days_back_to_scan <= 0:
        result.add_error("Days Back to Scan must be greater than 0")
    if settings.max_items_per_newsletter <= 0:
        result.add_error("Max Items per Newsletter must be greater than 0")
    if not settings.content_type_list:
        result.add_error("At least one content type must be selected")

    return result
