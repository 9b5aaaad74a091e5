"""Parsing of model output into newsletter content."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from media_newsletter.core.classifier import (
    BUCKET_ORDER,
    MOVIES,
    MUSIC_LIKE,
    OTHER,
    SERIES_LIKE,
    MediaBuckets,
    classify,
)
from media_newsletter.core.fallback import category_section
from media_newsletter.models.content import ContentDocument, MediaRecord, Section

logger = logging.getLogger(__name__)

UNSTRUCTURED_TITLE = "Your Weekly Media Update"
UNSTRUCTURED_INTRODUCTION = "Check out what's new in your library!"
UNSTRUCTURED_SECTION_TITLE = "New Additions"
UNSTRUCTURED_SECTION_DESCRIPTION = "Recently added content"
UNSTRUCTURED_CONCLUSION = "Enjoy watching and listening!"

# Checked in order; the first matching keyword set wins
SECTION_KEYWORDS = (
    (MOVIES, ("movie", "film")),
    (SERIES_LIKE, ("tv", "series", "show")),
    (MUSIC_LIKE, ("music", "album", "audio")),
)


class _DecodedSection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sectiontitle: str = ""
    description: str = ""


class _DecodedNewsletter(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = ""
    introduction: str = ""
    sections: List[_DecodedSection] = Field(default_factory=list)
    conclusion: str = ""


@dataclass
class Interpretation:
    """A parsed document plus whether it came from the model's JSON."""

    document: ContentDocument
    structured: bool


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key).lower(): _lower_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def extract_json_block(text: str) -> Optional[str]:
    """Return the text between the first '{' and the last '}', if any."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or start >= end:
        return None
    return text[start : end + 1]


def match_section_bucket(section_title: str) -> Optional[str]:
    """Map a model-written section title to a category, by keyword."""
    title = section_title.lower()
    for bucket, keywords in SECTION_KEYWORDS:
        if any(keyword in title for keyword in keywords):
            return bucket
    return None


def reconcile_sections(sections: List[Section], records: List[MediaRecord]) -> List[Section]:
    """Replace model-claimed items with the caller's records.

    Each section receives the bucket its title names. A section naming no
    category receives the "other" bucket when it has records, and is left as
    decoded otherwise. A bucket is placed at most once; buckets no section
    asked for are appended as standard category sections.
    """
    buckets: MediaBuckets = classify(records)
    placed: Set[str] = set()

    for section in sections:
        bucket = match_section_bucket(section.title)
        if bucket is None:
            if not buckets.other:
                continue
            bucket = OTHER

        if bucket in placed:
            section.items = []
        else:
            section.items = buckets.get(bucket)
            placed.add(bucket)

    for bucket in BUCKET_ORDER:
        if bucket not in placed and buckets.get(bucket):
            logger.debug(f"Model omitted a section for {bucket}, appending one")
            sections.append(category_section(bucket, buckets.get(bucket)))

    return sections


def decode_structured(text: str, records: List[MediaRecord]) -> Optional[ContentDocument]:
    """Decode the model's JSON newsletter, or return None if there is none."""
    block = extract_json_block(text)
    if block is None:
        return None

    try:
        raw = json.loads(block)
        if not isinstance(raw, dict):
            raise ValueError(f"expected a JSON object, got {type(raw).__name__}")
        decoded = _DecodedNewsletter.model_validate(_lower_keys(raw))
        sections = [
            Section(title=section.sectiontitle, description=section.description)
            for section in decoded.sections
        ]
        return ContentDocument(
            title=decoded.title,
            introduction=decoded.introduction,
            sections=reconcile_sections(sections, records),
            conclusion=decoded.conclusion,
        )
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning(f"Failed to parse AI response as JSON, using plain text: {e}")
        return None
    except Exception as e:
        logger.warning(f"Unexpected error decoding AI response, using plain text: {e}")
        return None


def from_plain_text(text: str, records: List[MediaRecord]) -> ContentDocument:
    """Build a single-section newsletter around the first line of ``text``."""
    lines = [line for line in text.split("\n") if line.strip()]
    return ContentDocument(
        title=UNSTRUCTURED_TITLE,
        introduction=lines[0] if lines else UNSTRUCTURED_INTRODUCTION,
        sections=[
            Section(
                title=UNSTRUCTURED_SECTION_TITLE,
                description=UNSTRUCTURED_SECTION_DESCRIPTION,
                items=list(records),
            )
        ],
        conclusion=UNSTRUCTURED_CONCLUSION,
    )


def decode(text: str, records: List[MediaRecord]) -> Interpretation:
    """Interpret model output, reporting which path produced the document."""
    document = decode_structured(text or "", records)
    if document is not None:
        return Interpretation(document=document, structured=True)
    return Interpretation(document=from_plain_text(text or "", records), structured=False)


def interpret(text: str, records: List[MediaRecord]) -> ContentDocument:
    """Turn raw model text into a newsletter; never raises."""
    return decode(text, records).document
