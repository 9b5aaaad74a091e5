"""Grouping of catalog records into newsletter categories."""

from dataclasses import dataclass, field
from typing import Iterable, List

from media_newsletter.models.content import MediaRecord, MediaType

MOVIES = "movies"
SERIES_LIKE = "series_like"
MUSIC_LIKE = "music_like"
OTHER = "other"

BUCKET_ORDER = (MOVIES, SERIES_LIKE, MUSIC_LIKE, OTHER)

_TYPE_BUCKETS = {
    MediaType.MOVIE.value: MOVIES,
    MediaType.SERIES.value: SERIES_LIKE,
    MediaType.SEASON.value: SERIES_LIKE,
    MediaType.EPISODE.value: SERIES_LIKE,
    MediaType.MUSIC_ALBUM.value: MUSIC_LIKE,
    MediaType.AUDIO.value: MUSIC_LIKE,
}


@dataclass
class MediaBuckets:
    """Records partitioned by category, each list keeping input order."""

    movies: List[MediaRecord] = field(default_factory=list)
    series_like: List[MediaRecord] = field(default_factory=list)
    music_like: List[MediaRecord] = field(default_factory=list)
    other: List[MediaRecord] = field(default_factory=list)

    def get(self, bucket: str) -> List[MediaRecord]:
        return getattr(self, bucket)

    def non_empty(self) -> List[str]:
        """Bucket names holding at least one record, in display order."""
        return [name for name in BUCKET_ORDER if self.get(name)]


def bucket_for(item_type: str) -> str:
    """Return the bucket name for a catalog item type."""
    return _TYPE_BUCKETS.get(item_type, OTHER)


def classify(records: Iterable[MediaRecord]) -> MediaBuckets:
    """Partition records into movies, series-like, music-like and other."""
    buckets = MediaBuckets()
    for record in records:
        buckets.get(bucket_for(record.type)).append(record)
    return buckets
