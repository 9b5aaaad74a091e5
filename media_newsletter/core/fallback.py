"""Deterministic newsletter content used when the model is unavailable."""

import logging
from typing import Dict, List, Tuple

from media_newsletter.core.classifier import (
    MOVIES,
    MUSIC_LIKE,
    OTHER,
    SERIES_LIKE,
    classify,
)
from media_newsletter.models.content import ContentDocument, MediaRecord, Section

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "Your Weekly Jellyfin Update"
FALLBACK_CONCLUSION = (
    "Happy watching and listening! Your Jellyfin server has been busy adding "
    "great new content for you to enjoy."
)

# Section heading and description per category
CATEGORY_SECTIONS: Dict[str, Tuple[str, str]] = {
    MOVIES: ("🎬 New Movies", "Fresh movies added to your collection"),
    SERIES_LIKE: ("📺 TV Shows & Episodes", "New series and episodes to binge"),
    MUSIC_LIKE: ("🎵 New Music", "Latest albums and tracks"),
    OTHER: ("📚 Other Content", "Additional new content"),
}


def category_section(bucket: str, items: List[MediaRecord]) -> Section:
    """Build the standard section for one category."""
    title, description = CATEGORY_SECTIONS[bucket]
    return Section(title=title, description=description, items=items)


def synthesize_fallback(records: List[MediaRecord]) -> ContentDocument:
    """Build a complete newsletter from the records alone."""
    logger.warning("Creating fallback newsletter content without AI")

    buckets = classify(records)
    sections = [category_section(name, buckets.get(name)) for name in buckets.non_empty()]

    count = len(records)
    noun = "item" if count == 1 else "items"

    return ContentDocument(
        title=FALLBACK_TITLE,
        introduction=f"We've got {count} new {noun} in your library this week!",
        sections=sections,
        conclusion=FALLBACK_CONCLUSION,
    )
