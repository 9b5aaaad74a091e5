"""Content models for media newsletters."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_CAST = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MediaType(str, Enum):
    """Catalog item types the newsletter knows how to group."""

    MOVIE = "Movie"
    SERIES = "Series"
    SEASON = "Season"
    EPISODE = "Episode"
    MUSIC_ALBUM = "MusicAlbum"
    AUDIO = "Audio"
    BOOK = "Book"


class MediaRecord(BaseModel):
    """Read-only snapshot of one catalog entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Catalog identifier")
    title: str = Field(..., description="Display title")
    type: str = Field(..., description="Item type, usually a MediaType value")
    year: Optional[int] = Field(None, description="Production year")
    overview: Optional[str] = Field(None, description="Synopsis")
    genres: List[str] = Field(default_factory=list, description="Genres")
    director: Optional[str] = Field(None, description="Director")
    cast: List[str] = Field(default_factory=list, description="Lead cast")
    rating: Optional[str] = Field(None, description="Parental rating")
    community_rating: Optional[float] = Field(
        None, ge=0.0, le=10.0, description="Community rating out of 10"
    )
    date_added: datetime = Field(default_factory=_utcnow, description="Added to library")
    poster_url: Optional[str] = Field(None, description="Poster reference")
    library: Optional[str] = Field(None, description="Library name")
    series_name: Optional[str] = Field(None, description="Parent series")
    season_number: Optional[int] = Field(None, description="Season index")
    episode_number: Optional[int] = Field(None, description="Episode index")
    album_artist: Optional[str] = Field(None, description="Album artist")
    track_count: Optional[int] = Field(None, description="Tracks on the album")

    @field_validator("cast")
    @classmethod
    def limit_cast(cls, value: List[str]) -> List[str]:
        return value[:MAX_CAST]


class GenerationRequest(BaseModel):
    """Input for one newsletter generation run."""

    records: List[MediaRecord] = Field(..., description="Records, newest first")
    tone: str = Field("friendly", description="Writing tone")
    personalize: bool = Field(True, description="Add personal recommendations")
    custom_instructions: Optional[str] = Field(
        None, description="Extra instructions appended to the prompt"
    )


class Section(BaseModel):
    """A titled group of records inside a newsletter."""

    title: str = Field(..., description="Section heading")
    description: str = Field("", description="Section blurb")
    items: List[MediaRecord] = Field(default_factory=list, description="Records")


class ContentDocument(BaseModel):
    """Generated newsletter content, ready for rendering."""

    title: str = Field(..., description="Newsletter title")
    introduction: str = Field("", description="Opening paragraph")
    sections: List[Section] = Field(default_factory=list, description="Sections")
    conclusion: str = Field("", description="Closing paragraph")
    generated_at: datetime = Field(
        default_factory=_utcnow, description="Generation time"
    )

    def all_items(self) -> List[MediaRecord]:
        """Return every record across sections, in section order."""
        return [item for section in self.sections for item in section.items]
