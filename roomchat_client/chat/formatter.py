"""
Message formatting module.

Turns raw user text into markup that is safe to hand to a rich-text view:
HTML-significant characters are escaped first, then **bold**, *italic* and
bare http(s) URLs are converted to tags.
"""

import re
from datetime import datetime
from typing import Optional

_ESCAPES = {
    '&': '&amp;',
    '<': '&lt;',
    '>': '&gt;',
    '"': '&quot;',
    "'": '&#39;',
}

_ESCAPE_RE = re.compile(r'[&<>"\']')
_BOLD_RE = re.compile(r'\*\*(.+?)\*\*')
_ITALIC_RE = re.compile(r'\*(.+?)\*')
_URL_RE = re.compile(r'(https?://\S+)')

_LINK_TEMPLATE = r'<a href="\1" target="_blank" rel="noopener noreferrer">\1</a>'


def escape_html(text: str) -> str:
    """Escape the five HTML-significant characters."""
    return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], text)


def format_message(text: str) -> str:
    """Format raw message text for display.

    Escaping runs before any substitution so crafted ``**``/``*``/URL
    sequences cannot inject markup. Bold must run before italic; nested or
    overlapping emphasis is not supported. Not idempotent: format each raw
    message exactly once.
    """
    out = escape_html(text)
    out = _BOLD_RE.sub(r'<strong>\1</strong>', out)
    out = _ITALIC_RE.sub(r'<em>\1</em>', out)
    out = _URL_RE.sub(_LINK_TEMPLATE, out)
    return out


def format_time(ts: Optional[datetime]) -> str:
    """Local date and time for a message timestamp."""
    if ts is None:
        return ''
    return ts.astimezone().strftime('%x %X')


class MessageFormatter:
    """Stateless facade over the formatting helpers."""

    @staticmethod
    def format(text: str) -> str:
        return format_message(text)

    @staticmethod
    def format_time(ts: Optional[datetime]) -> str:
        return format_time(ts)
