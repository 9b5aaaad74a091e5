"""HTML rendering of newsletter content."""

import html
import logging
import re
import threading
from importlib import resources
from typing import List, Optional

from media_newsletter.exceptions import RenderError
from media_newsletter.models.content import ContentDocument, MediaRecord, Section

logger = logging.getLogger(__name__)

TEMPLATE_FILENAME = "newsletter-template.html"
DATE_FORMAT = "%B %d, %Y"
MAX_GENRE_TAGS = 3

PLACEHOLDERS = (
    "{{NEWSLETTER_TITLE}}",
    "{{GENERATION_DATE}}",
    "{{INTRODUCTION}}",
    "{{CONCLUSION}}",
    "{{SECTIONS}}",
)
_PLACEHOLDER_PATTERN = re.compile("|".join(re.escape(name) for name in PLACEHOLDERS))

BUILT_IN_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{NEWSLETTER_TITLE}}</title>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 0; background: #f8f9fa; }
        .container { max-width: 600px; margin: 0 auto; background: white; }
        .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 40px 30px; text-align: center; }
        .content { padding: 30px; }
        .introduction { background: #f8f9fa; padding: 20px; border-radius: 8px; border-left: 4px solid #667eea; margin-bottom: 30px; }
        .section { margin-bottom: 40px; }
        .section-title { font-size: 22px; color: #343a40; margin-bottom: 20px; }
        .media-item { display: flex; background: white; border-radius: 12px; box-shadow: 0 2px 8px rgba(0,0,0,0.08); margin-bottom: 20px; overflow: hidden; }
        .media-details { padding: 20px; flex: 1; }
        .media-title { font-size: 18px; font-weight: 600; margin-bottom: 8px; }
        .conclusion { background: #f8f9fa; padding: 25px; border-radius: 8px; text-align: center; border-left: 4px solid #28a745; }
        .footer { background: #343a40; color: white; padding: 25px; text-align: center; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{{NEWSLETTER_TITLE}}</h1>
            <p>Generated on {{GENERATION_DATE}}</p>
        </div>
        <div class="content">
            <div class="introduction">{{INTRODUCTION}}</div>
            {{SECTIONS}}
            <div class="conclusion"><p>{{CONCLUSION}}</p></div>
        </div>
        <div class="footer">
            <p>Generated by <strong>Jellyfin AI Newsletter</strong></p>
        </div>
    </div>
</body>
</html>"""


def escape_html(text: Optional[str]) -> str:
    """Escape &, <, >, double and single quotes; None becomes ''."""
    if not text:
        return ""
    return html.escape(str(text), quote=True)


class TemplateCache:
    """Loads the base template once and keeps it for the process lifetime."""

    def __init__(
        self,
        package: str = "media_newsletter",
        directory: str = "templates",
        filename: str = TEMPLATE_FILENAME,
    ):
        self.package = package
        self.directory = directory
        self.filename = filename
        self._template: Optional[str] = None
        self._lock = threading.Lock()

    def get(self) -> str:
        """Return the cached template, loading it on first use."""
        if self._template is None:
            with self._lock:
                if self._template is None:
                    self._template = self._load()
        return self._template

    def _load(self) -> str:
        try:
            root = resources.files(self.package).joinpath(self.directory)
            for entry in root.iterdir():
                if entry.name.endswith(self.filename):
                    logger.debug(f"Loaded packaged template {entry.name}")
                    return entry.read_text(encoding="utf-8")
            logger.info("No packaged newsletter template found, using built-in template")
        except (OSError, ModuleNotFoundError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to load packaged template, using built-in template: {e}")
        return BUILT_IN_TEMPLATE


_default_cache = TemplateCache()


class TemplateRenderer:
    """Renders a ContentDocument into an email-ready HTML page."""

    def __init__(self, cache: Optional[TemplateCache] = None):
        self.cache = cache or _default_cache

    def render(self, document: ContentDocument) -> str:
        """Render ``document``; falls back to a plain layout on any error."""
        try:
            return self._render_template(document)
        except Exception as e:
            logger.error(f"Failed to generate email HTML from template: {e}")
            return self.render_fallback(document)

    def _render_template(self, document: ContentDocument) -> str:
        template = self.cache.get()
        missing = [name for name in PLACEHOLDERS if name not in template]
        if missing:
            raise RenderError(f"Template is missing placeholders: {', '.join(missing)}")

        values = {
            "{{NEWSLETTER_TITLE}}": escape_html(document.title),
            "{{GENERATION_DATE}}": document.generated_at.strftime(DATE_FORMAT),
            "{{INTRODUCTION}}": escape_html(document.introduction),
            "{{CONCLUSION}}": escape_html(document.conclusion),
            "{{SECTIONS}}": self.sections_html(document.sections),
        }
        # Single pass, so placeholder text inside values is left alone
        return _PLACEHOLDER_PATTERN.sub(lambda match: values[match.group(0)], template)

    def sections_html(self, sections: List[Section]) -> str:
        parts = []
        for section in sections:
            parts.append(
                f"""
            <div class="section">
                <div class="section-header">
                    <div>
                        <h2 class="section-title">{escape_html(section.title)}</h2>
                        <p class="section-description">{escape_html(section.description)}</p>
                    </div>
                </div>
                <div class="media-items">
                    {self.media_items_html(section.items)}
                </div>
            </div>"""
            )
        return "\n".join(parts)

    def media_items_html(self, items: List[MediaRecord]) -> str:
        parts = []
        for item in items:
            if item.poster_url:
                poster = (
                    f'<img src="{escape_html(item.poster_url)}" '
                    f'alt="{escape_html(item.title)} poster" />'
                )
            else:
                poster = '<div class="media-poster-placeholder">No Image<br/>Available</div>'

            meta = []
            if item.year is not None:
                meta.append(f"<span>{item.year}</span>")
            if item.type:
                meta.append(f"<span>{escape_html(item.type)}</span>")
            if item.community_rating is not None:
                meta.append(f'<span class="rating">★ {item.community_rating:.1f}</span>')
            if item.director:
                meta.append(f"<span>Dir: {escape_html(item.director)}</span>")

            overview = (
                f'<p class="media-overview">{escape_html(item.overview)}</p>'
                if item.overview
                else ""
            )
            genres = "".join(
                f'<span class="genre-tag">{escape_html(genre)}</span>'
                for genre in item.genres[:MAX_GENRE_TAGS]
            )

            parts.append(
                f"""
            <div class="media-item">
                <div class="media-poster">
                    {poster}
                </div>
                <div class="media-details">
                    <h3 class="media-title">{escape_html(item.title)}</h3>
                    <div class="media-meta">
                        {"".join(meta)}
                    </div>
                    {overview}
                    <div class="media-genres">
                        {genres}
                    </div>
                </div>
            </div>"""
            )
        return "\n".join(parts)

    def render_fallback(self, document: ContentDocument) -> str:
        """Self-contained HTML page that needs no template."""
        title = escape_html(document.title)
        parts = [
            f"""<html>
<head>
    <title>{title}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 20px; line-height: 1.6; }}
        .header {{ background: #667eea; color: white; padding: 20px; text-align: center; }}
        .content {{ padding: 20px; }}
        .item {{ margin: 20px 0; padding: 15px; border: 1px solid #ddd; border-radius: 8px; }}
        .title {{ font-size: 18px; font-weight: bold; color: #333; }}
        .meta {{ color: #666; font-size: 14px; margin: 5px 0; }}
    </style>
</head>
<body>
    <div class="header">
        <h1>{title}</h1>
        <p>Generated on {document.generated_at.strftime(DATE_FORMAT)}</p>
    </div>
    <div class="content">
        <p>{escape_html(document.introduction)}</p>"""
        ]

        for section in document.sections:
            parts.append(
                f"""
        <h2>{escape_html(section.title)}</h2>
        <p><em>{escape_html(section.description)}</em></p>"""
            )
            for item in section.items:
                year = f" ({item.year})" if item.year is not None else ""
                overview = f"<p>{escape_html(item.overview)}</p>" if item.overview else ""
                parts.append(
                    f"""
        <div class="item">
            <div class="title">{escape_html(item.title)}</div>
            <div class="meta">{escape_html(item.type)}{year}</div>
            {overview}
        </div>"""
                )

        parts.append(
            f"""
        <p>{escape_html(document.conclusion)}</p>
    </div>
</body>
</html>"""
        )
        return "".join(parts)
