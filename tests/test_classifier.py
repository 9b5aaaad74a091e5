"""Tests for media classification."""

from conftest import make_record

from media_newsletter.core.classifier import (
    BUCKET_ORDER,
    MOVIES,
    MUSIC_LIKE,
    OTHER,
    SERIES_LIKE,
    bucket_for,
    classify,
)


def test_known_types_map_to_buckets():
    assert bucket_for("Movie") == MOVIES
    assert bucket_for("Series") == SERIES_LIKE
    assert bucket_for("Season") == SERIES_LIKE
    assert bucket_for("Episode") == SERIES_LIKE
    assert bucket_for("MusicAlbum") == MUSIC_LIKE
    assert bucket_for("Audio") == MUSIC_LIKE


def test_unknown_types_go_to_other():
    assert bucket_for("Book") == OTHER
    assert bucket_for("Trailer") == OTHER
    assert bucket_for("") == OTHER


def test_every_record_lands_in_exactly_one_bucket():
    records = [
        make_record(f"Item {i}", item_type)
        for i, item_type in enumerate(
            ["Movie", "Series", "Season", "Episode", "MusicAlbum", "Audio", "Book", "Photo"]
        )
    ]

    buckets = classify(records)
    grouped = [record for name in BUCKET_ORDER for record in buckets.get(name)]

    assert len(grouped) == len(records)
    assert {record.id for record in grouped} == {record.id for record in records}


def test_classify_keeps_input_order():
    first = make_record("First", "Movie")
    second = make_record("Second", "Movie")

    buckets = classify([first, second])

    assert [record.title for record in buckets.movies] == ["First", "Second"]


def test_non_empty_follows_display_order():
    buckets = classify([make_record("Album", "Audio"), make_record("Film", "Movie")])

    assert buckets.non_empty() == [MOVIES, MUSIC_LIKE]


def test_classify_empty():
    assert classify([]).non_empty() == []
