"""
Landing-page image resolver for articles whose feed item carried no image.

Pages are fetched with browser-like headers in small concurrent batches,
then searched for linked-data images first and social meta tags second.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional
from urllib.parse import urljoin

import aiohttp
from bs4 import BeautifulSoup

from core.models.article import Article

logger = logging.getLogger(__name__)

# Sites that serve a generic logo when an article has no real image
PLACEHOLDER_PATTERNS = (
    'ogimage-tsun.png',
    'default-image',
)

META_IMAGE_KEYS = (
    'og:image',
    'og:image:url',
    'og:image:secure_url',
    'twitter:image',
    'twitter:image:src',
)

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://www.google.com/",
}

PageLoader = Callable[[str], Awaitable[Optional[str]]]


def is_usable_image_url(url: Optional[str]) -> bool:
    """False for empty values, inline data and known placeholder images."""
    if not url or not url.strip():
        return False
    if url.strip().lower().startswith('data:'):
        return False
    return not any(pattern in url for pattern in PLACEHOLDER_PATTERNS)


def _image_candidates(value: Any) -> Iterable[str]:
    """Yield URLs from an ``image`` field: string, {url: ...} or a list of either."""
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        url = value.get('url') or value.get('contentUrl')
        if isinstance(url, str):
            yield url
    elif isinstance(value, list):
        for entry in value:
            if isinstance(entry, (str, dict)):
                yield from _image_candidates(entry)


def _linked_data_nodes(data: Any) -> Iterable[dict]:
    items = data if isinstance(data, list) else [data]
    for item in items:
        if not isinstance(item, dict):
            continue
        yield item
        graph = item.get('@graph')
        if isinstance(graph, list):
            yield from (node for node in graph if isinstance(node, dict))


def find_linked_data_image(soup: BeautifulSoup, page_url: str) -> Optional[str]:
    """Search application/ld+json blocks for an image or thumbnailUrl."""
    for script in soup.find_all('script', attrs={'type': 'application/ld+json'}):
        raw = script.string or script.get_text()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug(f"Ignoring unparseable JSON-LD block on {page_url}")
            continue

        for node in _linked_data_nodes(data):
            for field_name in ('image', 'thumbnailUrl'):
                for candidate in _image_candidates(node.get(field_name)):
                    resolved = urljoin(page_url, candidate.strip())
                    if is_usable_image_url(resolved):
                        return resolved
    return None


def find_meta_image(soup: BeautifulSoup, page_url: str) -> Optional[str]:
    """Search og:image / twitter:image meta tags in document order."""
    for tag in soup.find_all('meta'):
        key = (tag.get('property') or tag.get('name') or '').strip().lower()
        if key not in META_IMAGE_KEYS:
            continue
        content = (tag.get('content') or '').strip()
        if not content:
            continue
        # Handles both //cdn... and /path forms
        resolved = urljoin(page_url, content)
        if is_usable_image_url(resolved):
            return resolved
    return None


def extract_page_image(html: str, page_url: str) -> Optional[str]:
    """Linked data first, then social meta tags."""
    soup = BeautifulSoup(html, 'html.parser')
    return find_linked_data_image(soup, page_url) or find_meta_image(soup, page_url)


class ImageResolver:
    """Fills in missing article images from landing pages."""

    def __init__(self,
                 timeout: int = 5,
                 batch_size: int = 5,
                 user_agent: str = "Mozilla/5.0",
                 page_loader: Optional[PageLoader] = None):
        """
        Initialize image resolver.

        Args:
            timeout: Per-page request timeout in seconds
            batch_size: Number of pages fetched concurrently
            user_agent: Browser-like User-Agent header
            page_loader: Optional coroutine replacing the HTTP fetch (used by tests)
        """
        self.timeout = timeout
        self.batch_size = max(1, batch_size)
        self.user_agent = user_agent
        self._page_loader = page_loader
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        if self._page_loader is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={'User-Agent': self.user_agent, **BROWSER_HEADERS}
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._session:
            await self._session.close()
            self._session = None

    async def fetch_page(self, url: str) -> Optional[str]:
        """Fetch a landing page; None on any transport failure."""
        if self._page_loader is not None:
            return await self._page_loader(url)

        if not self._session:
            raise RuntimeError("ImageResolver must be used as async context manager")

        try:
            async with self._session.get(url) as response:
                if response.status != 200:
                    logger.debug(f"Landing page {url} returned HTTP {response.status}")
                    return None
                return await response.text(errors='replace')
        except asyncio.TimeoutError:
            logger.debug(f"Timeout fetching landing page {url}")
            return None
        except aiohttp.ClientError as e:
            logger.debug(f"HTTP error fetching landing page {url}: {e}")
            return None

    async def resolve(self, article: Article) -> Optional[str]:
        """Find an image for one article; never raises."""
        try:
            html = await self.fetch_page(article.link)
            if not html:
                return None
            return extract_page_image(html, article.link)
        except Exception as e:
            logger.debug(f"Error resolving image for {article.link}: {e}")
            return None

    async def resolve_missing(self, articles: List[Article]) -> List[Article]:
        """
        Resolve images for every article that lacks one.

        Articles are processed in fixed-size batches; each batch runs
        concurrently and the next batch starts once it has finished.

        Returns:
            A new list in the same order, with enriched copies where an
            image was found
        """
        resolved = list(articles)
        pending = [i for i, article in enumerate(resolved) if not article.image_url]
        found = 0

        for start in range(0, len(pending), self.batch_size):
            batch = pending[start:start + self.batch_size]
            images = await asyncio.gather(*(self.resolve(resolved[i]) for i in batch))
            for index, image_url in zip(batch, images):
                if image_url:
                    resolved[index] = resolved[index].with_image(image_url)
                    found += 1

        logger.info(f"Resolved {found}/{len(pending)} missing images from landing pages")
        return resolved
