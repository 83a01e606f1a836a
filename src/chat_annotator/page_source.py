from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

_TIMEOUT_SECONDS = 30
_MAX_REDIRECTS = 5
_MAX_RESPONSE_BYTES = 5_000_000

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

# Where chat front ends render the conversation title.
_HEADING_SELECTOR = '[role="heading"], h1, .text-2xl'


class PageLoadError(Exception):
    pass


@dataclass
class PageSnapshot:
    url: str
    document: BeautifulSoup

    @property
    def headings(self) -> list[str]:
        return extract_headings(self.document)


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def extract_headings(document: BeautifulSoup) -> list[str]:
    return [tag.get_text().strip() for tag in document.select(_HEADING_SELECTOR)]


def load_page_file(url: str, html_path: str | Path) -> PageSnapshot:
    """Pair a saved copy of a page with the address it was saved from."""
    path = Path(html_path)
    try:
        html = path.read_text(encoding="utf-8")
    except OSError as ex:
        raise PageLoadError(f"Cannot read {path}: {ex.strerror or ex}") from ex
    return PageSnapshot(url=url, document=parse_html(html))


def _on_retry(retry_state) -> None:
    attempt = retry_state.attempt_number
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    reason = type(exc).__name__ if exc else "Unknown"
    logger.warning(f"{reason} fetching page. Retrying in {wait:.0f}s (attempt {attempt}/3)...")


@retry(
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    stop=stop_after_attempt(3),
    before_sleep=_on_retry,
    reraise=True,
)
async def _get(client: httpx.AsyncClient, url: str) -> httpx.Response:
    return await client.get(url)


async def fetch_page(
    url: str,
    *,
    timeout_seconds: float = _TIMEOUT_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PageSnapshot:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise PageLoadError("URL must use http or https scheme")

    try:
        async with httpx.AsyncClient(
            headers=_HEADERS,
            timeout=timeout_seconds,
            follow_redirects=True,
            max_redirects=_MAX_REDIRECTS,
            transport=transport,
        ) as client:
            response = await _get(client, url)
    except httpx.TimeoutException as ex:
        raise PageLoadError(f"Request timed out after {timeout_seconds} seconds") from ex
    except httpx.TooManyRedirects as ex:
        raise PageLoadError(f"Too many redirects (max {_MAX_REDIRECTS})") from ex
    except httpx.HTTPError as ex:
        raise PageLoadError(str(ex)) from ex

    if response.status_code >= 400:
        raise PageLoadError(f"HTTP {response.status_code} fetching {url}")
    if len(response.content) > _MAX_RESPONSE_BYTES:
        raise PageLoadError(f"Response too large ({len(response.content):,} bytes)")

    content_type = response.headers.get("content-type", "")
    if "html" not in content_type:
        logger.warning(f"Unexpected content type {content_type!r} for {url}; parsing as HTML anyway")

    logger.debug(f"Fetched {url} ({len(response.content):,} bytes)")
    return PageSnapshot(url=str(response.url), document=parse_html(response.text))
