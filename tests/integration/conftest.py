import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

# Also add the project root to handle absolute imports
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from core.capabilities import TopicClassifier, TopicWriter  # noqa: E402
from core.config import ApplicationConfig  # noqa: E402
from core.content.image_resolver import ImageResolver  # noqa: E402
from core.exceptions import LLMError  # noqa: E402
from core.feed_fetcher import AsyncFeedFetcher  # noqa: E402
from core.models.article import Article  # noqa: E402
from core.models.source import BiasCategory, Source  # noqa: E402
from core.pipeline import TopicPipeline  # noqa: E402
from core.publisher import InMemoryTopicStore  # noqa: E402
from core.sources.registry import StaticSourceRegistry  # noqa: E402
from core.sources.rss.parser import RSSParser  # noqa: E402

BASE_TIME = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)

SIX_PARAGRAPHS = "\n\n".join([
    "Parliament passed the transit funding bill on Monday.",
    "The bill allocates new money to regional rail.",
    "The minister said the vote was a turning point.",
    "Transit ridership has grown for three straight years.",
    "Opposition members argued the plan is unaffordable.",
    "The bill now moves to the senate for review.",
])


def make_synthesis_json(**overrides: Any) -> str:
    payload = {
        "ai_summary": SIX_PARAGRAPHS,
        "key_points": ["Bill passed", "Rail funding increased"],
        "tags": ["transit", "budget", "transit"],
        "left_emphasis": "Left-leaning outlets stressed climate benefits.",
        "right_emphasis": "Right-leaning outlets stressed the cost.",
        "common_ground": "All outlets agree the bill passed.",
    }
    payload.update(overrides)
    return json.dumps(payload)


class FakeClassifier(TopicClassifier):
    def __init__(self, response: Any = "[]", error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.listings: List[str] = []

    def cluster(self, listing: str) -> str:
        self.listings.append(listing)
        if self.error is not None:
            raise self.error
        if isinstance(self.response, str):
            return self.response
        return json.dumps(self.response)


class FakeWriter(TopicWriter):
    """Answers per topic: responses are consumed in call order."""

    def __init__(self, responses: Optional[List[Any]] = None) -> None:
        self.responses = list(responses or [])
        self.calls: List[List[Article]] = []

    def synthesize(self, articles: List[Article]) -> str:
        self.calls.append(list(articles))
        response = self.responses.pop(0) if self.responses else make_synthesis_json()
        if isinstance(response, Exception):
            raise response
        return response


class FailingStore(InMemoryTopicStore):
    def __init__(self, fail_topics: int = 0, fail_articles: bool = False) -> None:
        super().__init__()
        self.fail_topics = fail_topics
        self.fail_articles = fail_articles

    def insert_topic(self, topic):
        from core.exceptions import StoreWriteError
        if self.fail_topics > 0:
            self.fail_topics -= 1
            raise StoreWriteError("news_topics", RuntimeError("insert rejected"))
        return super().insert_topic(topic)

    def insert_article(self, article, topic_key):
        from core.exceptions import StoreWriteError
        if self.fail_articles:
            raise StoreWriteError("news_articles", RuntimeError("insert rejected"))
        super().insert_article(article, topic_key)


def rss_item(title: Optional[str] = "Headline", link: Optional[str] = "https://example.com/a",
             pub_date: Optional[str] = "Mon, 04 Mar 2024 12:00:00 GMT", description: str = "Summary text",
             extra: str = "") -> str:
    parts = ["<item>"]
    if title is not None:
        parts.append(f"<title>{title}</title>")
    if link is not None:
        parts.append(f"<link>{link}</link>")
    if pub_date is not None:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    parts.append(f"<description>{description}</description>")
    parts.append(extra)
    parts.append("</item>")
    return "".join(parts)


def rss_feed(*items: str) -> str:
    return '<?xml version="1.0"?><rss version="2.0"><channel><title>Feed</title>' + "".join(items) + "</channel></rss>"


@pytest.fixture
def make_source() -> Callable[..., Source]:
    def _factory(name: str = "Outlet", bias: BiasCategory = BiasCategory.CENTER,
                 source_id: Optional[str] = None, active: bool = True) -> Source:
        slug = name.lower().replace(" ", "-")
        return Source(
            source_id=source_id or slug,
            name=name,
            feed_url=f"https://{slug}.example.com/rss",
            bias=bias,
            active=active,
        )

    return _factory


@pytest.fixture
def make_article() -> Callable[..., Article]:
    counter = {"n": 0}

    def _factory(source: Source, title: Optional[str] = None, image_url: Optional[str] = None,
                 description: str = "Description", minutes_ago: int = 0) -> Article:
        counter["n"] += 1
        n = counter["n"]
        return Article(
            title=title or f"Story {n}",
            link=f"https://{source.source_id}.example.com/story-{n}",
            published_at=BASE_TIME - timedelta(minutes=minutes_ago),
            source=source,
            description=description,
            image_url=image_url,
        )

    return _factory


@pytest.fixture
def pipeline_factory():
    """Build a TopicPipeline over in-process fakes.

    ``feeds`` maps a source's feed URL to its document, or to an
    exception raised by the fetch.
    """

    def _factory(sources: List[Source], feeds: Dict[str, Any], classifier: TopicClassifier,
                 writer: TopicWriter, store: Optional[InMemoryTopicStore] = None,
                 pages: Optional[Dict[str, str]] = None,
                 settings: Optional[ApplicationConfig] = None) -> TopicPipeline:
        pages = pages or {}

        async def load_feed(source: Source) -> str:
            document = feeds[source.feed_url]
            if isinstance(document, Exception):
                raise document
            return document

        async def load_page(url: str) -> Optional[str]:
            return pages.get(url)

        return TopicPipeline(
            registry=StaticSourceRegistry(sources, denylist=["CP24", "CTV News"]),
            fetcher=AsyncFeedFetcher(loader=load_feed),
            parser=RSSParser(),
            image_resolver=ImageResolver(page_loader=load_page),
            classifier=classifier,
            writer=writer,
            store=store if store is not None else InMemoryTopicStore(),
            settings=settings,
        )

    return _factory


@pytest.fixture
def llm_error() -> LLMError:
    return LLMError("openai", "gpt-4o", RuntimeError("service unavailable"))
