"""Tests for interpreting model output."""

import json

from conftest import make_record

from media_newsletter.core.interpreter import (
    UNSTRUCTURED_CONCLUSION,
    UNSTRUCTURED_SECTION_TITLE,
    UNSTRUCTURED_TITLE,
    decode,
    extract_json_block,
    interpret,
    match_section_bucket,
)


def _response(sections, **extra):
    body = {
        "title": "Fresh This Week",
        "introduction": "Hello friends",
        "sections": sections,
        "conclusion": "See you next week",
        **extra,
    }
    return json.dumps(body)


def test_plain_text_becomes_single_section(records):
    result = decode("no json here at all", records)

    assert result.structured is False
    document = result.document
    assert document.title == UNSTRUCTURED_TITLE
    assert document.introduction == "no json here at all"
    assert document.conclusion == UNSTRUCTURED_CONCLUSION
    assert len(document.sections) == 1
    assert document.sections[0].title == UNSTRUCTURED_SECTION_TITLE
    assert document.sections[0].items == records


def test_plain_text_uses_first_non_blank_line(records):
    document = interpret("\n\n  \nFirst real line\nSecond line", records)

    assert document.introduction == "First real line"


def test_empty_text_uses_default_introduction(records):
    document = interpret("", records)

    assert document.introduction == "Check out what's new in your library!"


def test_movies_section_gets_movie_records_not_model_items():
    movies = [make_record("Inception", "Movie"), make_record("Arrival", "Movie")]
    text = _response(
        [
            {
                "sectionTitle": "Movies",
                "description": "Big screen picks",
                "items": [{"title": "Made Up Film"}],
            }
        ]
    )

    document = interpret(text, movies)

    assert len(document.sections) == 1
    section = document.sections[0]
    assert section.title == "Movies"
    assert section.description == "Big screen picks"
    assert section.items == movies


def test_json_wrapped_in_prose_and_fences(records):
    text = "Sure! Here it is:\n```json\n" + _response([{"sectionTitle": "Films"}]) + "\n```\nEnjoy."

    result = decode(text, records)

    assert result.structured is True
    assert result.document.title == "Fresh This Week"
    assert result.document.introduction == "Hello friends"


def test_keys_are_case_insensitive(records):
    text = json.dumps(
        {
            "Title": "Shouting",
            "INTRODUCTION": "Hi",
            "Sections": [{"SECTIONTITLE": "TV Shows", "Description": "Binge"}],
            "Conclusion": "Bye",
        }
    )

    document = interpret(text, records)

    assert document.title == "Shouting"
    assert document.sections[0].title == "TV Shows"
    assert [item.title for item in document.sections[0].items] == ["The Expanse"]


def test_missing_categories_are_appended(records):
    text = _response([{"sectionTitle": "Movie Night", "description": "Films"}])

    document = interpret(text, records)

    titles = [section.title for section in document.sections]
    assert titles == [
        "Movie Night",
        "📺 TV Shows & Episodes",
        "🎵 New Music",
        "📚 Other Content",
    ]
    assert {item.id for item in document.all_items()} == {record.id for record in records}


def test_bucket_is_placed_only_once(records):
    text = _response(
        [
            {"sectionTitle": "Movies"},
            {"sectionTitle": "More Films"},
        ]
    )

    document = interpret(text, records)

    assert [item.title for item in document.sections[0].items] == ["Inception", "Arrival"]
    assert document.sections[1].items == []
    all_ids = [item.id for item in document.all_items()]
    assert len(all_ids) == len(set(all_ids))


def test_unmatched_section_gets_other_records(records):
    text = _response([{"sectionTitle": "Staff Picks"}])

    document = interpret(text, records)

    assert document.sections[0].title == "Staff Picks"
    assert [item.title for item in document.sections[0].items] == ["Dune"]


def test_unmatched_section_without_other_records_stays_empty():
    movies = [make_record("Arrival", "Movie")]
    text = _response([{"sectionTitle": "Staff Picks"}, {"sectionTitle": "Films"}])

    document = interpret(text, movies)

    assert document.sections[0].items == []
    assert document.sections[1].items == movies


def test_invalid_json_falls_back_to_plain_text(records):
    result = decode("{not json}", records)

    assert result.structured is False
    assert result.document.introduction == "{not json}"


def test_extract_json_block():
    assert extract_json_block('before {"a": {"b": 1}} after') == '{"a": {"b": 1}}'
    assert extract_json_block("no braces") is None
    assert extract_json_block("} backwards {") is None


def test_match_section_bucket_keywords():
    assert match_section_bucket("🎬 New Movies") == "movies"
    assert match_section_bucket("Film Corner") == "movies"
    assert match_section_bucket("Binge-worthy Shows") == "series_like"
    assert match_section_bucket("Fresh Albums") == "music_like"
    assert match_section_bucket("Audio Treats") == "music_like"
    assert match_section_bucket("Reading List") is None
