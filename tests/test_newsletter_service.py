"""Tests for the newsletter service."""

from typing import List

import pytest
from unittest.mock import AsyncMock

from media_newsletter.clients.interfaces import CatalogSource, MailTransport
from media_newsletter.clients.providers import ProviderAdapter
from media_newsletter.core.newsletter import (
    EMPTY_PREVIEW_HTML,
    TEST_EMAIL_SUBJECT,
    NewsletterService,
    sample_document,
)
from media_newsletter.core.pipeline import ContentPipeline


class FakeCatalog(CatalogSource):
    def __init__(self, records):
        self.records = records
        self.queries = []

    async def query_recent(self, since, libraries, types, max_count):
        self.queries.append(
            {"since": since, "libraries": libraries, "types": types, "max_count": max_count}
        )
        return self.records[:max_count]


class FakeMailer(MailTransport):
    def __init__(self, failing=(), raising=()):
        self.failing = set(failing)
        self.raising = set(raising)
        self.sent: List[dict] = []

    async def send(self, recipient, subject, html_body):
        if recipient in self.raising:
            raise RuntimeError("connection reset")
        self.sent.append({"recipient": recipient, "subject": subject, "html": html_body})
        return recipient not in self.failing


def _service(settings, records, mailer=None):
    adapter = AsyncMock(spec=ProviderAdapter)
    return NewsletterService(
        settings,
        catalog=FakeCatalog(records),
        mailer=mailer or FakeMailer(),
        pipeline=ContentPipeline(adapter),
    )


@pytest.mark.asyncio
async def test_partial_delivery_still_succeeds(make_settings, records):
    settings = make_settings(recipients="a@example.com,b@example.com,c@example.com")
    mailer = FakeMailer(failing={"b@example.com"})
    service = _service(settings, records, mailer)

    report = await service.generate_and_send()

    assert report.succeeded
    assert report.success_count == 2
    assert report.failure_count == 1
    assert report.item_count == len(records)
    assert not report.skipped
    assert [mail["recipient"] for mail in mailer.sent] == [
        "a@example.com",
        "b@example.com",
        "c@example.com",
    ]


@pytest.mark.asyncio
async def test_subject_uses_item_count(make_settings, records):
    mailer = FakeMailer()
    service = _service(make_settings(recipients="a@example.com"), records, mailer)

    await service.generate_and_send()

    assert mailer.sent[0]["subject"] == "🎬 Your Weekly Jellyfin Update - 5 New Items"
    assert "Inception" in mailer.sent[0]["html"]


@pytest.mark.asyncio
async def test_send_exception_counts_as_failure(make_settings, records):
    settings = make_settings(recipients="a@example.com,b@example.com")
    service = _service(settings, records, FakeMailer(raising={"a@example.com"}))

    report = await service.generate_and_send()

    assert report.success_count == 1
    assert report.failure_count == 1
    assert report.succeeded


@pytest.mark.asyncio
async def test_all_failures_is_not_success(make_settings, records):
    settings = make_settings(recipients="a@example.com")
    service = _service(settings, records, FakeMailer(failing={"a@example.com"}))

    report = await service.generate_and_send()

    assert not report.succeeded
    assert report.failure_count == 1


@pytest.mark.asyncio
async def test_no_recipients_skips_before_querying(make_settings, records):
    service = _service(make_settings(recipients=None), records)

    report = await service.generate_and_send()

    assert report.skipped
    assert not report.succeeded
    assert service.catalog.queries == []


@pytest.mark.asyncio
async def test_no_new_items_skips(make_settings):
    mailer = FakeMailer()
    service = _service(make_settings(recipients="a@example.com"), [], mailer)

    report = await service.generate_and_send()

    assert report.skipped
    assert report.reason == "no new items"
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_catalog_query_uses_settings(make_settings, records):
    settings = make_settings(
        recipients="a@example.com",
        included_libraries="Movies, Kids",
        content_types="Movie,Episode",
        max_items_per_newsletter=3,
        days_back_to_scan=14,
    )
    service = _service(settings, records)

    report = await service.generate_and_send()

    query = service.catalog.queries[0]
    assert query["libraries"] == ["Movies", "Kids"]
    assert query["types"] == ["Movie", "Episode"]
    assert query["max_count"] == 3
    assert report.item_count == 3


@pytest.mark.asyncio
async def test_generate_html_preview(make_settings, records):
    html = await _service(make_settings(), records).generate_html()

    assert "<!DOCTYPE html>" in html
    assert "Arrival" in html


@pytest.mark.asyncio
async def test_generate_html_without_items(make_settings):
    assert await _service(make_settings(), []).generate_html() == EMPTY_PREVIEW_HTML


@pytest.mark.asyncio
async def test_missing_catalog_yields_no_items(make_settings):
    service = NewsletterService(make_settings(recipients="a@example.com"), mailer=FakeMailer())

    assert service.catalog is None
    report = await service.generate_and_send()

    assert report.skipped


@pytest.mark.asyncio
async def test_send_test_email(make_settings):
    mailer = FakeMailer()
    service = _service(make_settings(), [], mailer)

    assert await service.send_test_email("me@example.com")

    mail = mailer.sent[0]
    assert mail["recipient"] == "me@example.com"
    assert mail["subject"] == TEST_EMAIL_SUBJECT
    assert "The Matrix" in mail["html"]
    assert "Stranger Things" in mail["html"]


def test_sample_document_sections():
    document = sample_document()

    assert [section.title for section in document.sections] == ["🎬 New Movies", "📺 TV Shows"]
    assert document.sections[0].items[0].director == "The Wachowskis"


@pytest.mark.asyncio
async def test_test_connections_without_real_clients(make_settings, records):
    results = await _service(make_settings(), records).test_connections()

    assert results == {"jellyfin": False, "smtp": False}
