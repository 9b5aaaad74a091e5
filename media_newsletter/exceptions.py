"""Exception hierarchy for newsletter generation."""

from typing import Optional


class NewsletterError(Exception):
    """Base class for all newsletter errors."""


class ProviderError(NewsletterError):
    """The LLM backend could not be reached or returned an unusable response."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class UnsupportedProviderError(ProviderError):
    """No dialect is registered for the configured provider id."""

    def __init__(self, provider: str):
        super().__init__(f"AI provider '{provider}' is not supported")
        self.provider = provider


class ConfigurationError(NewsletterError):
    """Required settings are missing or invalid."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid configuration")


class RenderError(NewsletterError):
    """Template substitution failed."""
