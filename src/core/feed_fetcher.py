#!/usr/bin/env python3
"""
Async Feed Fetcher

Retrieves one raw feed document per source, all sources in parallel.
A failing source contributes nothing; it never aborts the others.
"""

import asyncio
import time
import logging
from typing import List, Optional, Tuple, Awaitable, Callable

import aiohttp

from core.models.source import Source
from core.models.run import RunContext
from core.exceptions import SourceError, SourceConnectionError, SourceTimeoutError

logger = logging.getLogger(__name__)

FeedResult = Tuple[Source, Optional[str]]
DocumentLoader = Callable[[Source], Awaitable[str]]


class AsyncFeedFetcher:
    """Parallel feed fetching with a per-request timeout."""

    def __init__(self,
                 timeout: int = 10,
                 user_agent: str = 'Mozilla/5.0 (compatible; TopicPipeline/1.0)',
                 max_concurrent: int = 10,
                 loader: Optional[DocumentLoader] = None):
        """
        Initialize async feed fetcher.

        Args:
            timeout: Request timeout in seconds
            user_agent: Client identifier header sent with every request
            max_concurrent: Maximum concurrent requests
            loader: Optional coroutine replacing the HTTP request (used by tests)
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.max_concurrent = max_concurrent
        self._loader = loader
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        if self._loader is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={'User-Agent': self.user_agent}
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._session:
            await self._session.close()
            self._session = None

    async def fetch(self, source: Source) -> str:
        """
        Fetch the raw feed document of one source.

        Raises:
            SourceTimeoutError: If the request exceeds the timeout
            SourceConnectionError: On any other transport failure
        """
        if self._loader is not None:
            return await self._loader(source)

        if not self._session:
            raise RuntimeError("AsyncFeedFetcher must be used as async context manager")

        logger.info(f"Fetching feed for {source.name} from: {source.feed_url}")
        try:
            async with self._session.get(source.feed_url) as response:
                response.raise_for_status()
                return await response.text(errors='replace')
        except asyncio.TimeoutError:
            raise SourceTimeoutError(source.name, self.timeout)
        except aiohttp.ClientError as e:
            raise SourceConnectionError(source.name, source.feed_url, e)

    async def fetch_all(self, sources: List[Source], ctx: Optional[RunContext] = None) -> List[FeedResult]:
        """
        Fetch every source's feed in parallel.

        Args:
            sources: Sources to fetch
            ctx: Run context receiving per-source failures

        Returns:
            One (source, document) pair per source, in input order; the
            document is None when the fetch failed
        """
        logger.info(f"Fetching {len(sources)} feeds in parallel")
        start_time = time.time()

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def fetch_with_semaphore(source: Source) -> str:
            async with semaphore:
                return await self.fetch(source)

        results = await asyncio.gather(
            *(fetch_with_semaphore(source) for source in sources),
            return_exceptions=True
        )

        documents: List[FeedResult] = []
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                if isinstance(result, SourceError):
                    message = result.message
                else:
                    message = f"Unexpected error fetching feed for {source.name}: {result}"
                if ctx is not None:
                    ctx.error(message)
                else:
                    logger.error(message)
                documents.append((source, None))
                continue
            documents.append((source, result))

        duration = time.time() - start_time
        successful = sum(1 for _, document in documents if document is not None)
        logger.info(f"Fetched {successful}/{len(sources)} feeds in {duration:.2f}s")

        return documents
