"""AI-written media newsletters for a Jellyfin library."""

__version__ = "1.0.0"
