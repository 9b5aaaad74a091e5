"""Interfaces for the catalog and mail collaborators."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from media_newsletter.models.content import MediaRecord


class CatalogSource(ABC):
    """Supplies recently added media records."""

    @abstractmethod
    async def query_recent(
        self,
        since: datetime,
        libraries: List[str],
        types: List[str],
        max_count: int,
    ) -> List[MediaRecord]:
        """
        Get records added since ``since``, newest first.

        Args:
            since: Only records added after this time
            libraries: Library names to include (empty means all)
            types: Item types to include
            max_count: Maximum number of records to return

        Returns:
            Records ordered most recent first, at most ``max_count`` long
        """
        pass


class MailTransport(ABC):
    """Delivers one HTML email to one recipient."""

    @abstractmethod
    async def send(self, recipient: str, subject: str, html_body: str) -> bool:
        """
        Send an email.

        Returns:
            True if the message was accepted for delivery, False otherwise
        """
        pass
