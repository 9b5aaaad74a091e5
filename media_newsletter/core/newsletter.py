"""Newsletter orchestration: catalog query, content generation and delivery."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from media_newsletter.clients.interfaces import CatalogSource, MailTransport
from media_newsletter.clients.jellyfin import JellyfinClient
from media_newsletter.clients.mailer import SmtpMailer
from media_newsletter.clients.providers import ProviderAdapter
from media_newsletter.core.classifier import MOVIES
from media_newsletter.core.fallback import category_section
from media_newsletter.core.pipeline import ContentPipeline
from media_newsletter.models.content import (
    ContentDocument,
    GenerationRequest,
    MediaRecord,
    Section,
)
from media_newsletter.models.settings import Settings

logger = logging.getLogger(__name__)

EMPTY_PREVIEW_HTML = "<p>No new media items found in the specified time period.</p>"
TEST_EMAIL_SUBJECT = "Test Email - Jellyfin AI Newsletter"


class DeliveryReport(BaseModel):
    """Outcome of one newsletter delivery run."""

    success_count: int = Field(0, description="Recipients that accepted the email")
    failure_count: int = Field(0, description="Recipients that failed")
    item_count: int = Field(0, description="Media items in the newsletter")
    skipped: bool = Field(False, description="Nothing was sent because there was no work")
    reason: Optional[str] = Field(None, description="Why the run was skipped")

    @property
    def succeeded(self) -> bool:
        return self.success_count > 0


def sample_document() -> ContentDocument:
    """Fixed content used to check the mail setup end to end."""
    now = datetime.now(timezone.utc)
    matrix = MediaRecord(
        id="test1",
        title="The Matrix",
        type="Movie",
        year=1999,
        overview="A computer hacker learns from mysterious rebels about the true nature of his reality.",
        genres=["Action", "Sci-Fi"],
        director="The Wachowskis",
        community_rating=8.7,
        date_added=now - timedelta(days=1),
    )
    stranger_things = MediaRecord(
        id="test2",
        title="Stranger Things",
        type="Series",
        year=2016,
        overview=(
            "When a young boy disappears, his mother, a police chief and his friends "
            "must confront terrifying supernatural forces."
        ),
        genres=["Drama", "Fantasy", "Horror"],
        community_rating=8.7,
        date_added=now - timedelta(days=2),
    )
    return ContentDocument(
        title="Test Newsletter - Your Weekly Jellyfin Update",
        introduction="This is a test email to verify your newsletter configuration is working correctly.",
        sections=[
            category_section(MOVIES, [matrix]),
            Section(
                title="📺 TV Shows",
                description="New series to binge-watch",
                items=[stranger_things],
            ),
        ],
        conclusion="This was a test email. If you received this, your newsletter setup is working perfectly!",
    )


class NewsletterService:
    """Runs the full newsletter flow against configured collaborators."""

    def __init__(
        self,
        settings: Settings,
        catalog: Optional[CatalogSource] = None,
        mailer: Optional[MailTransport] = None,
        pipeline: Optional[ContentPipeline] = None,
    ):
        self.settings = settings
        self.catalog = catalog or self._default_catalog(settings)
        self.mailer = mailer or SmtpMailer(settings)
        self.pipeline = pipeline or ContentPipeline(ProviderAdapter())

    @staticmethod
    def _default_catalog(settings: Settings) -> Optional[CatalogSource]:
        if settings.jellyfin_url and settings.jellyfin_api_key:
            return JellyfinClient(settings.jellyfin_url, settings.jellyfin_api_key, settings)
        return None

    async def fetch_recent(self) -> List[MediaRecord]:
        """Records added within the configured scan window."""
        if self.catalog is None:
            logger.error("Jellyfin not configured - set JELLYFIN_URL and JELLYFIN_API_KEY")
            return []

        since = datetime.now(timezone.utc) - timedelta(days=self.settings.days_back_to_scan)
        return await self.catalog.query_recent(
            since,
            self.settings.library_list,
            self.settings.content_type_list,
            self.settings.max_items_per_newsletter,
        )

    async def generate_document(self, records: List[MediaRecord]) -> ContentDocument:
        request = GenerationRequest(
            records=records,
            tone=self.settings.newsletter_tone,
            personalize=self.settings.enable_personalization,
            custom_instructions=self.settings.custom_prompt_additions or None,
        )
        return await self.pipeline.generate(request, self.settings.provider_config())

    async def generate_and_send(self) -> DeliveryReport:
        """Generate this period's newsletter and email it to every recipient."""
        logger.info("📰 Starting newsletter generation and send process")

        recipients = self.settings.recipient_list
        if not recipients:
            logger.warning("No recipients configured, skipping newsletter generation")
            return DeliveryReport(skipped=True, reason="no recipients")

        records = await self.fetch_recent()
        if not records:
            logger.info(
                f"No new media items in the last {self.settings.days_back_to_scan} day(s), skipping newsletter"
            )
            return DeliveryReport(skipped=True, reason="no new items")

        logger.info(f"Found {len(records)} new media items to include in newsletter")

        document = await self.generate_document(records)
        html = self.pipeline.render(document)
        subject = self.settings.subject_for(len(records))

        report = await self.send_to_recipients(recipients, subject, html)
        report.item_count = len(records)
        return report

    async def send_to_recipients(
        self, recipients: List[str], subject: str, html: str
    ) -> DeliveryReport:
        """Send ``html`` to all recipients concurrently."""
        results = await asyncio.gather(
            *(self.mailer.send(recipient, subject, html) for recipient in recipients),
            return_exceptions=True,
        )

        success_count = 0
        for recipient, result in zip(recipients, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                logger.error(f"Email to {recipient} raised: {result}")
            elif result:
                success_count += 1

        failure_count = len(results) - success_count
        logger.info(
            f"✅ Newsletter sent to {success_count} recipient(s), {failure_count} failure(s)"
        )
        return DeliveryReport(success_count=success_count, failure_count=failure_count)

    async def generate_html(self) -> str:
        """Render the current newsletter without sending it."""
        records = await self.fetch_recent()
        if not records:
            return EMPTY_PREVIEW_HTML
        document = await self.generate_document(records)
        return self.pipeline.render(document)

    async def send_test_email(self, recipient: str) -> bool:
        """Send the fixed sample newsletter to ``recipient``."""
        logger.info(f"Sending test email to {recipient}")
        html = self.pipeline.render(sample_document())
        return await self.mailer.send(recipient, TEST_EMAIL_SUBJECT, html)

    async def test_connections(self) -> Dict[str, bool]:
        """Check connectivity of the catalog and the mail server."""
        results: Dict[str, bool] = {"jellyfin": False, "smtp": False}
        if isinstance(self.catalog, JellyfinClient):
            results["jellyfin"] = await self.catalog.test_connection()
        if isinstance(self.mailer, SmtpMailer):
            results["smtp"] = await self.mailer.test_connection()
        return results
