"""
Email Template Service for rendering announcement emails.

WHAT: Loads and renders the Jinja2 templates that turn an announcement into
a notification email for one recipient.

WHY: Template-based emails provide:
- Consistent branding across notifications
- Content updates without code changes
- Separation of content from dispatch logic

HOW: Uses a Jinja2 environment with FileSystemLoader over
app/templates/email. Announcement bodies are admin-authored HTML or
plain text; they are sanitized before being marked safe for the template.
"""

import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from jinja2 import (
    Environment,
    FileSystemLoader,
    TemplateError,
    TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup, escape

from app.core.config import settings
from app.core.exceptions import TemplateRenderError

logger = logging.getLogger(__name__)


DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

HIGH_PRIORITY_PREFIX = "\N{LARGE RED CIRCLE} High Priority: "
DEFAULT_PREFIX = "\N{PUBLIC ADDRESS LOUDSPEAKER} "

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_IFRAME_RE = re.compile(r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.IGNORECASE)
_HANDLER_DQ_RE = re.compile(r"\bon\w+\s*=\s*\"[^\"]*\"", re.IGNORECASE)
_HANDLER_SQ_RE = re.compile(r"\bon\w+\s*=\s*'[^']*'", re.IGNORECASE)
_JS_SCHEME_RE = re.compile(r"javascript:", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")

_PARAGRAPH_STYLE = "margin: 10px 0; color: #374151; line-height: 1.6;"

# Inline styles for common tags; many mail clients ignore <style> blocks
_TAG_STYLES = (
    (re.compile(r"<p\b[^>]*>", re.IGNORECASE), f'<p style="{_PARAGRAPH_STYLE}">'),
    (re.compile(r"<br\s*/?>", re.IGNORECASE), '<br style="line-height: 1.6;">'),
    (re.compile(r"<strong>", re.IGNORECASE), '<strong style="font-weight: bold;">'),
    (re.compile(r"<b>", re.IGNORECASE), '<b style="font-weight: bold;">'),
    (re.compile(r"<em>", re.IGNORECASE), '<em style="font-style: italic;">'),
    (re.compile(r"<i>", re.IGNORECASE), '<i style="font-style: italic;">'),
)


def clean_html_content(content: Optional[str]) -> Markup:
    """
    Sanitize admin-authored content for an email body.

    Removes script and iframe elements, inline event handlers and
    ``javascript:`` URLs. HTML input keeps its tags with inline styling;
    plain text is escaped and its newlines become ``<br>``.

    Args:
        content: Raw description or content

    Returns:
        Markup safe to insert into an autoescaped template
    """
    if not content:
        return Markup("")

    content = _SCRIPT_RE.sub("", content)
    content = _IFRAME_RE.sub("", content)
    content = _HANDLER_DQ_RE.sub("", content)
    content = _HANDLER_SQ_RE.sub("", content)
    content = _JS_SCHEME_RE.sub("", content)

    if _TAG_RE.search(content):
        for pattern, replacement in _TAG_STYLES:
            content = pattern.sub(replacement, content)
        return Markup(content)

    escaped = str(escape(content))
    escaped = escaped.replace("\r\n", "\n").replace("\n", "<br>\n")
    return Markup(f'<p style="{_PARAGRAPH_STYLE}">{escaped}</p>')


def announcement_subject(announcement: Any) -> str:
    """Build the subject line for an announcement notification."""
    if announcement.is_high_priority:
        return f"{HIGH_PRIORITY_PREFIX}{announcement.title}"
    return f"{DEFAULT_PREFIX}{announcement.title}"


def announcement_url(announcement_id: int) -> str:
    """Link to the announcement in the HR portal."""
    return f"{settings.FRONTEND_URL.rstrip('/')}/hr/announcements/{announcement_id}"


class AnnouncementEmailRenderer:
    """
    Renders announcement notification emails.

    WHAT: ``render(announcement, recipient, context) -> (subject, html)``.

    WHY: Centralizes template rendering:
    - Single point for template configuration
    - Template caching (Jinja2 caches compiled templates per environment)
    - Error handling for missing or broken templates

    Example:
        renderer = AnnouncementEmailRenderer()
        subject, html = renderer.render(announcement, employee)
    """

    template_name = "announcement.html"

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Initialize renderer.

        Args:
            template_dir: Path to templates directory (defaults to app/templates/email)
        """
        self._template_dir = template_dir or DEFAULT_TEMPLATE_DIR
        self._env = self._create_environment()

    def _create_environment(self) -> Environment:
        """
        Create Jinja2 environment with proper configuration.

        WHY: Auto-escaping keeps titles and names from injecting markup.

        Returns:
            Configured Jinja2 Environment
        """
        env = Environment(
            loader=FileSystemLoader(str(self._template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

        env.filters["long_date"] = self._long_date_filter
        env.filters["clean_html"] = clean_html_content

        return env

    @staticmethod
    def _long_date_filter(value: Optional[date]) -> str:
        """Format a date as e.g. "March 05, 2025"."""
        if value is None:
            return ""
        return value.strftime("%B %d, %Y")

    def _get_base_context(self) -> Dict[str, Any]:
        """
        Get base context variables for all templates.

        Returns:
            Dict with base context variables
        """
        return {
            "year": datetime.utcnow().year,
            "frontend_url": settings.FRONTEND_URL,
            "app_name": settings.APP_NAME,
        }

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with given context.

        Args:
            template_name: Name of template file (e.g., "announcement.html")
            context: Template variables

        Returns:
            Rendered HTML string

        Raises:
            TemplateRenderError: If template not found or render fails
        """
        try:
            template = self._env.get_template(template_name)
            full_context = {**self._get_base_context(), **context}
            return template.render(**full_context)
        except TemplateNotFound:
            logger.error(f"Email template not found: {template_name}")
            raise TemplateRenderError(
                message=f"Email template not found: {template_name}",
                template=template_name,
            )
        except TemplateError as e:
            logger.error(f"Error rendering template {template_name}: {e}")
            raise TemplateRenderError(
                message="Failed to render email template",
                template=template_name,
                error=str(e),
            )

    def render(
        self,
        announcement: Any,
        recipient: Any,
        context: Optional[Dict[str, Any]] = None,
    ) -> Tuple[str, str]:
        """
        Render the notification for one recipient.

        Args:
            announcement: Announcement being sent
            recipient: Employee receiving it (needs ``name``)
            context: Extra template variables (override defaults)

        Returns:
            Tuple of (subject, html_content)
        """
        template_context = {
            "announcement": announcement,
            "recipient": recipient,
            "recipient_name": getattr(recipient, "name", None) or "",
            "announcement_url": announcement_url(announcement.id),
            "description_html": clean_html_content(announcement.description),
            "content_html": clean_html_content(announcement.content),
        }
        if context:
            template_context.update(context)

        html = self.render_template(self.template_name, template_context)
        return announcement_subject(announcement), html


# Module-level singleton
_renderer: Optional[AnnouncementEmailRenderer] = None


def get_announcement_renderer() -> AnnouncementEmailRenderer:
    """
    Get or create the global renderer instance.

    WHY: Singleton keeps Jinja2's compiled template cache effective.

    Returns:
        AnnouncementEmailRenderer instance
    """
    global _renderer

    if _renderer is None:
        _renderer = AnnouncementEmailRenderer()

    return _renderer
