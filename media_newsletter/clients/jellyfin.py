"""Jellyfin API client for retrieving recently added media."""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp

from media_newsletter.clients.interfaces import CatalogSource
from media_newsletter.models.content import MAX_CAST, MediaRecord, MediaType

logger = logging.getLogger(__name__)

# Lower-cased config names to Jellyfin item kinds
ITEM_TYPE_NAMES = {member.value.lower(): member.value for member in MediaType}

ITEM_FIELDS = "Overview,Genres,People,DateCreated,ProductionYear,OfficialRating,CommunityRating,ParentId"


def parse_jellyfin_date(value: Optional[str]) -> datetime:
    """Parse Jellyfin's ISO timestamps (7 fractional digits, trailing Z)."""
    if not value:
        return datetime.now(timezone.utc)
    try:
        normalized = re.sub(r"\.(\d{6})\d+", r".\1", value.replace("Z", "+00:00"))
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    except ValueError:
        logger.debug(f"Unparseable Jellyfin date: {value}")
        return datetime.now(timezone.utc)


def item_type_names(content_types: List[str]) -> List[str]:
    """Map configured content types to Jellyfin item kinds, dropping unknowns."""
    names = []
    for content_type in content_types:
        name = ITEM_TYPE_NAMES.get(content_type.strip().lower())
        if name:
            names.append(name)
        else:
            logger.warning(f"Ignoring unknown content type: {content_type}")
    return names


class JellyfinClient(CatalogSource):
    """Client for the Jellyfin REST API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        settings=None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize Jellyfin client.

        Args:
            base_url: Jellyfin server URL
            api_key: Jellyfin API key
            settings: Settings instance for configuration values
            session: Shared aiohttp session; one is opened per call when omitted
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.headers = {
            "X-Emby-Token": api_key,
            "Accept": "application/json",
        }
        self.timeout = settings.jellyfin_timeout if settings else 15.0
        self.include_posters = settings.include_posters if settings else True
        self.poster_hosting = settings.poster_hosting_type if settings else "JellyfinAPI"
        self._session = session

    async def query_recent(
        self,
        since: datetime,
        libraries: List[str],
        types: List[str],
        max_count: int,
    ) -> List[MediaRecord]:
        """Get items added since ``since``, newest first."""
        try:
            if self._session is not None:
                records = await self._query(self._session, since, libraries, types, max_count)
            else:
                async with aiohttp.ClientSession() as session:
                    records = await self._query(session, since, libraries, types, max_count)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Network error querying Jellyfin: {e}")
            return []
        except (KeyError, ValueError, TypeError) as e:
            logger.error(f"Unexpected Jellyfin response: {e}")
            return []

        logger.info(f"Found {len(records)} recently added items since {since:%Y-%m-%d}")
        return records

    async def _query(
        self,
        session: aiohttp.ClientSession,
        since: datetime,
        libraries: List[str],
        types: List[str],
        max_count: int,
    ) -> List[MediaRecord]:
        params = {
            "Recursive": "true",
            "SortBy": "DateCreated",
            "SortOrder": "Descending",
            "MinDateCreated": since.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "Limit": str(max_count * 2),
            "Fields": ITEM_FIELDS,
        }
        include_types = item_type_names(types)
        if include_types:
            params["IncludeItemTypes"] = ",".join(include_types)

        if libraries:
            library_ids = await self._resolve_libraries(session, libraries)
            if not library_ids:
                logger.warning(f"None of the configured libraries exist: {', '.join(libraries)}")
                return []
            records = []
            for name, library_id in library_ids.items():
                items = await self._get_items(session, {**params, "ParentId": library_id})
                records.extend(self._convert_items(items, library=name))
        else:
            items = await self._get_items(session, params)
            records = self._convert_items(items)

        records.sort(key=lambda record: record.date_added, reverse=True)
        return records[:max_count]

    async def _get_json(
        self, session: aiohttp.ClientSession, path: str, params: Optional[Dict[str, str]] = None
    ) -> Any:
        async with session.get(
            f"{self.base_url}{path}",
            headers=self.headers,
            params=params,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            if response.status != 200:
                error_text = await response.text()
                raise ValueError(f"Jellyfin API error {response.status} for {path}: {error_text[:200]}")
            return await response.json(content_type=None)

    async def _get_items(
        self, session: aiohttp.ClientSession, params: Dict[str, str]
    ) -> List[Dict[str, Any]]:
        data = await self._get_json(session, "/Items", params)
        return data.get("Items", []) if isinstance(data, dict) else []

    async def _resolve_libraries(
        self, session: aiohttp.ClientSession, libraries: List[str]
    ) -> Dict[str, str]:
        """Map allowed library names (case-insensitive) to their ids."""
        wanted = {name.strip().lower() for name in libraries if name.strip()}
        folders = await self._get_json(session, "/Library/VirtualFolders")
        return {
            folder["Name"]: folder["ItemId"]
            for folder in folders or []
            if folder.get("Name", "").lower() in wanted and folder.get("ItemId")
        }

    def _convert_items(
        self, items: List[Dict[str, Any]], library: Optional[str] = None
    ) -> List[MediaRecord]:
        records = []
        for item in items:
            try:
                records.append(self.convert_item(item, library=library))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Failed to convert item {item.get('Name', '?')}: {e}")
        return records

    def convert_item(self, item: Dict[str, Any], library: Optional[str] = None) -> MediaRecord:
        """Convert a Jellyfin BaseItemDto into a MediaRecord."""
        item_type = item.get("Type") or ""
        people = item.get("People") or []
        director = next(
            (person.get("Name") for person in people if person.get("Type") == "Director"),
            None,
        )
        cast = [person.get("Name") for person in people if person.get("Type") == "Actor"]

        fields: Dict[str, Any] = {}
        if item_type == MediaType.SEASON.value:
            fields["series_name"] = item.get("SeriesName")
            fields["season_number"] = item.get("IndexNumber")
        elif item_type == MediaType.EPISODE.value:
            fields["series_name"] = item.get("SeriesName")
            fields["season_number"] = item.get("ParentIndexNumber")
            fields["episode_number"] = item.get("IndexNumber")
        elif item_type == MediaType.MUSIC_ALBUM.value:
            fields["album_artist"] = item.get("AlbumArtist")
            fields["track_count"] = item.get("ChildCount")
        elif item_type == MediaType.AUDIO.value:
            fields["album_artist"] = item.get("AlbumArtist")

        return MediaRecord(
            id=item["Id"],
            title=item.get("Name") or "Unknown Title",
            type=item_type,
            year=item.get("ProductionYear"),
            overview=item.get("Overview"),
            genres=item.get("Genres") or [],
            director=director,
            cast=[name for name in cast if name][:MAX_CAST],
            rating=item.get("OfficialRating"),
            community_rating=item.get("CommunityRating"),
            date_added=parse_jellyfin_date(item.get("DateCreated")),
            poster_url=self.poster_url(item),
            library=library,
            **fields,
        )

    def poster_url(self, item: Dict[str, Any]) -> Optional[str]:
        """Primary image URL, or None when posters are off or missing."""
        if not self.include_posters:
            return None
        if "Primary" not in (item.get("ImageTags") or {}):
            return None
        if self.poster_hosting.lower() == "imgur":
            # TODO: upload to Imgur once an Imgur client id setting exists
            logger.debug("Imgur poster hosting not available, using Jellyfin URL")
        return f"{self.base_url}/Items/{item['Id']}/Images/Primary"

    async def test_connection(self) -> bool:
        """Test the Jellyfin API connection.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            if self._session is not None:
                await self._get_json(self._session, "/System/Info")
            else:
                async with aiohttp.ClientSession() as session:
                    await self._get_json(session, "/System/Info")
            logger.info("Jellyfin API connection successful")
            return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Network error testing Jellyfin connection: {e}")
            return False
        except ValueError as e:
            logger.error(f"Jellyfin connection test failed: {e}")
            return False
