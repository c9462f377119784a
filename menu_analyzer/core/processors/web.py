from __future__ import annotations

import html
import re
from typing import Optional
from urllib.parse import urlparse

import httpx

_SCRIPT_RE = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def html_to_text(markup: str) -> str:
    """Drop scripts, styles and tags, then collapse whitespace."""
    text = _SCRIPT_RE.sub(" ", markup or "")
    text = _STYLE_RE.sub(" ", text)
    text = _COMMENT_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def is_http_url(href: str) -> bool:
    parsed = urlparse(href or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class WebPageFetcher:
    """Plain GET of a menu page. No JavaScript execution."""

    def __init__(self, timeout: float = 15.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def fetch_text(self, href: str) -> str:
        """Raises httpx.HTTPError on transport failures and non-2xx responses."""
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
            headers={"User-Agent": "MenuAnalyzer/1.0 (+menu intake)"},
        ) as client:
            response = await client.get(href)
            response.raise_for_status()
            return html_to_text(response.text)
