"""Tests for prompt construction."""

from conftest import make_record

from media_newsletter.core.prompts import (
    build_item_description_prompt,
    build_newsletter_prompt,
    build_recommendation_prompt,
    format_item_for_prompt,
)


def test_format_item_includes_only_present_fields():
    record = make_record(
        "Inception",
        "Movie",
        year=2010,
        genres=["Action", "Sci-Fi"],
        director="Christopher Nolan",
        community_rating=8.8,
    )

    block = format_item_for_prompt(record)

    assert block.startswith("Title: Inception\nType: Movie\nYear: 2010\n")
    assert "Genres: Action, Sci-Fi" in block
    assert "Director: Christopher Nolan" in block
    assert "Rating: 8.8/10" in block
    assert "Overview:" not in block
    assert block.endswith("\n")


def test_newsletter_prompt_contains_tone_items_and_json_shape(records):
    prompt = build_newsletter_prompt(records, "witty", personalize=True)

    assert "TONE: witty" in prompt
    assert "PERSONALIZATION: Enabled - add personal touches and recommendations" in prompt
    assert "Personalized recommendations and viewing suggestions" in prompt
    for record in records:
        assert f"Title: {record.title}" in prompt
    assert '"sectionTitle": "Section name"' in prompt
    assert "{{" not in prompt


def test_newsletter_prompt_without_personalization(records):
    prompt = build_newsletter_prompt(records, "friendly", personalize=False)

    assert "PERSONALIZATION: Disabled - keep it general" in prompt
    assert "4. General recommendations" in prompt


def test_custom_instructions_are_appended(records):
    prompt = build_newsletter_prompt(records, "friendly", True, "Mention the holidays")

    assert prompt.endswith("\n\nADDITIONAL INSTRUCTIONS: Mention the holidays")


def test_blank_custom_instructions_are_ignored(records):
    prompt = build_newsletter_prompt(records, "friendly", True, "   ")

    assert "ADDITIONAL INSTRUCTIONS" not in prompt


def test_item_description_prompt():
    record = make_record("The Expanse", "Series", year=2015)

    prompt = build_item_description_prompt(record, "casual")

    assert prompt.startswith("Create a brief, engaging description for this series:")
    assert "Title: The Expanse" in prompt
    assert "Type: Series" not in prompt
    assert "Tone: casual" in prompt


def test_recommendation_prompt_lists_titles(records):
    prompt = build_recommendation_prompt(records[:2], "friendly")

    assert "- Inception (Movie)\n- Arrival (Movie)" in prompt
    assert "Tone: friendly" in prompt
