"""
Input Sanitization Module

Cleans user-supplied meal and plan text before it is stored.
"""

import re
from urllib.parse import urlparse

from constants import VIDEO_HOSTS

# Control characters other than tab and newline
_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b-\x1f\x7f-\x9f]')


def sanitize_text(text, max_length=10000):
    """
    Strip surrounding whitespace and control characters, then truncate.

    Args:
        text: The text to sanitize (can be None)
        max_length: Maximum allowed length (default 10000)

    Returns:
        Sanitized string; '' for None
    """
    if text is None:
        return ''

    if not isinstance(text, str):
        text = str(text)

    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = _CONTROL_CHARS.sub('', text).strip()

    if len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_optional(text, max_length=10000):
    """Like sanitize_text, but blank input becomes None."""
    text = sanitize_text(text, max_length)
    return text or None


def sanitize_url(url):
    """
    Sanitize a URL by rejecting anything that is not http(s).

    Prevents javascript:, data:, vbscript:, and other dangerous URL schemes
    that could execute code when used in href or src attributes.

    Args:
        url: The URL to validate (can be None)

    Returns:
        The URL if safe, empty string if unsafe or invalid
    """
    if not url or not isinstance(url, str):
        return ''

    url = url.strip()

    try:
        parsed = urlparse(url)
    except ValueError:
        return ''

    if parsed.scheme.lower() not in ('http', 'https') or not parsed.netloc:
        return ''

    return url


def is_video_url(url):
    """True when ``url`` is an http(s) link to YouTube or TikTok."""
    url = sanitize_url(url)
    if not url:
        return False
    host = (urlparse(url).hostname or '').lower()
    return host in VIDEO_HOSTS
