"""Prompt templates for newsletter text generation."""

from typing import List, Optional

from media_newsletter.models.content import MediaRecord

NEWSLETTER_PROMPT_TEMPLATE = """Create an engaging email newsletter featuring these recently added media items.

TONE: {tone}
PERSONALIZATION: {personalization}

MEDIA ITEMS:
{items}

Please create a newsletter with:
1. An engaging subject line and introduction
2. Organized sections for different content types (Movies, TV Shows, Music, etc.)
3. Brief, enticing descriptions for each item that go beyond the basic plot summary
4. {recommendations}
5. A warm conclusion encouraging engagement

Make it feel like it's written by a human who's genuinely excited about these additions. Avoid overly promotional language.
Format the response as JSON with this structure:
{{
  "title": "Newsletter title",
  "introduction": "Welcome paragraph",
  "sections": [
    {{
      "sectionTitle": "Section name",
      "description": "Section description",
      "items": [/* include the media items for this section */]
    }}
  ],
  "conclusion": "Closing paragraph"
}}"""

ITEM_DESCRIPTION_PROMPT_TEMPLATE = """Create a brief, engaging description for this {item_type}:

{details}

Tone: {tone}

Write a 1-2 sentence description that's more engaging than the basic plot summary. Focus on what makes this content interesting or appealing to watch."""

RECOMMENDATION_PROMPT_TEMPLATE = """Based on these recently added items, write a brief personalized recommendation paragraph:

{items}

Tone: {tone}

Create a warm, engaging paragraph that highlights why these additions are worth checking out. Make it feel personal and genuine."""


def _detail_lines(record: MediaRecord, include_type: bool = True) -> List[str]:
    lines = [f"Title: {record.title}"]
    if include_type:
        lines.append(f"Type: {record.type}")
    if record.year is not None:
        lines.append(f"Year: {record.year}")
    if record.overview:
        lines.append(f"Overview: {record.overview}")
    if record.genres:
        lines.append(f"Genres: {', '.join(record.genres)}")
    if record.director:
        lines.append(f"Director: {record.director}")
    if record.community_rating is not None:
        lines.append(f"Rating: {record.community_rating:.1f}/10")
    return lines


def format_item_for_prompt(record: MediaRecord) -> str:
    """Render one record as a multi-line block ending with a newline."""
    return "\n".join(_detail_lines(record)) + "\n"


def build_newsletter_prompt(
    records: List[MediaRecord],
    tone: str,
    personalize: bool,
    custom_instructions: Optional[str] = None,
) -> str:
    """Build the prompt asking for a JSON newsletter about ``records``."""
    prompt = NEWSLETTER_PROMPT_TEMPLATE.format(
        tone=tone,
        personalization=(
            "Enabled - add personal touches and recommendations"
            if personalize
            else "Disabled - keep it general"
        ),
        items="\n".join(format_item_for_prompt(record) for record in records),
        recommendations=(
            "Personalized recommendations and viewing suggestions"
            if personalize
            else "General recommendations"
        ),
    )

    if custom_instructions and custom_instructions.strip():
        prompt += f"\n\nADDITIONAL INSTRUCTIONS: {custom_instructions}"

    return prompt


def build_item_description_prompt(record: MediaRecord, tone: str) -> str:
    return ITEM_DESCRIPTION_PROMPT_TEMPLATE.format(
        item_type=record.type.lower(),
        details="\n".join(_detail_lines(record, include_type=False)),
        tone=tone,
    )


def build_recommendation_prompt(records: List[MediaRecord], tone: str) -> str:
    return RECOMMENDATION_PROMPT_TEMPLATE.format(
        items="\n".join(f"- {record.title} ({record.type})" for record in records),
        tone=tone,
    )
