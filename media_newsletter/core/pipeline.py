"""Content generation pipeline: prompt, model call, parsing and fallback."""

import logging
from typing import List, Optional

from media_newsletter.clients.providers import ProviderAdapter
from media_newsletter.core import interpreter
from media_newsletter.core.fallback import synthesize_fallback
from media_newsletter.core.prompts import (
    build_item_description_prompt,
    build_newsletter_prompt,
    build_recommendation_prompt,
)
from media_newsletter.core.renderer import TemplateRenderer
from media_newsletter.models.content import ContentDocument, GenerationRequest, MediaRecord
from media_newsletter.models.settings import ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATION = "Check out these great new additions to your library!"


def default_item_description(record: MediaRecord) -> str:
    return record.overview or f"New {record.type.lower()}: {record.title}"


class ContentPipeline:
    """Turns media records into newsletter content, with or without AI.

    Provider and parsing failures always degrade to the deterministic
    fallback document. Only cancellation of the running task propagates.
    """

    def __init__(
        self,
        adapter: Optional[ProviderAdapter] = None,
        renderer: Optional[TemplateRenderer] = None,
    ):
        self.adapter = adapter or ProviderAdapter()
        self.renderer = renderer or TemplateRenderer()

    async def generate(
        self, request: GenerationRequest, provider_config: ProviderConfig
    ) -> ContentDocument:
        """Generate newsletter content for ``request.records``."""
        if not provider_config.is_configured():
            logger.warning("AI provider not configured - using fallback newsletter")
            return synthesize_fallback(request.records)

        prompt = build_newsletter_prompt(
            request.records,
            request.tone,
            request.personalize,
            request.custom_instructions,
        )

        completion = await self.adapter.complete(provider_config, prompt)
        if not completion.ok:
            logger.warning(f"AI generation failed, using fallback newsletter: {completion.error}")
            return synthesize_fallback(request.records)

        result = interpreter.decode(completion.text, request.records)
        if result.structured:
            logger.info(f"🤖 AI newsletter generated with {len(result.document.sections)} section(s)")
        else:
            logger.info("🤖 AI response was not JSON - built newsletter from plain text")
        return result.document

    async def generate_item_description(
        self, record: MediaRecord, tone: str, provider_config: ProviderConfig
    ) -> str:
        """Short blurb for one record; the record's own overview on failure."""
        if not provider_config.is_configured():
            return default_item_description(record)

        completion = await self.adapter.complete(
            provider_config, build_item_description_prompt(record, tone)
        )
        if not completion.ok:
            logger.error(f"Failed to generate item description for {record.title}")
            return default_item_description(record)
        return completion.text

    async def generate_recommendation(
        self, records: List[MediaRecord], tone: str, provider_config: ProviderConfig
    ) -> str:
        """Recommendation paragraph covering ``records``."""
        if not provider_config.is_configured():
            return DEFAULT_RECOMMENDATION

        completion = await self.adapter.complete(
            provider_config, build_recommendation_prompt(records, tone)
        )
        if not completion.ok:
            logger.error("Failed to generate personalized recommendation")
            return DEFAULT_RECOMMENDATION
        return completion.text

    def render(self, document: ContentDocument) -> str:
        return self.renderer.render(document)
