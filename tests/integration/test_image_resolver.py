import asyncio

import pytest

from core.content.image_resolver import ImageResolver, extract_page_image, is_usable_image_url
from core.models.source import BiasCategory

PAGE_URL = "https://news.example.com/politics/story-1"


def page(head: str) -> str:
    return f"<html><head>{head}</head><body><p>Body</p></body></html>"


def ld_json(payload: str) -> str:
    return f'<script type="application/ld+json">{payload}</script>'


@pytest.mark.parametrize("payload,expected", [
    ('{"@type": "NewsArticle", "image": "https://cdn.example.com/ld.jpg"}', "https://cdn.example.com/ld.jpg"),
    ('{"image": {"@type": "ImageObject", "url": "https://cdn.example.com/obj.jpg"}}', "https://cdn.example.com/obj.jpg"),
    ('{"image": ["https://cdn.example.com/first.jpg", "https://cdn.example.com/second.jpg"]}',
     "https://cdn.example.com/first.jpg"),
    ('{"image": [{"url": "https://cdn.example.com/arr-obj.jpg"}]}', "https://cdn.example.com/arr-obj.jpg"),
    ('{"thumbnailUrl": "https://cdn.example.com/thumb.jpg"}', "https://cdn.example.com/thumb.jpg"),
    ('[{"@type": "WebPage"}, {"@type": "NewsArticle", "image": "https://cdn.example.com/list.jpg"}]',
     "https://cdn.example.com/list.jpg"),
    ('{"@graph": [{"@type": "NewsArticle", "image": {"url": "https://cdn.example.com/graph.jpg"}}]}',
     "https://cdn.example.com/graph.jpg"),
])
def test_linked_data_image_shapes(payload, expected):
    assert extract_page_image(page(ld_json(payload)), PAGE_URL) == expected


def test_linked_data_wins_over_meta_tags():
    html = page(
        '<meta property="og:image" content="https://cdn.example.com/og.jpg">'
        + ld_json('{"image": "https://cdn.example.com/ld.jpg"}')
    )

    assert extract_page_image(html, PAGE_URL) == "https://cdn.example.com/ld.jpg"


def test_broken_linked_data_falls_through_to_meta():
    html = page(ld_json('{"image": ') + '<meta name="twitter:image" content="https://cdn.example.com/tw.jpg">')

    assert extract_page_image(html, PAGE_URL) == "https://cdn.example.com/tw.jpg"


@pytest.mark.parametrize("content,expected", [
    ("https://cdn.example.com/og.jpg", "https://cdn.example.com/og.jpg"),
    ("//cdn.example.com/protocol-relative.jpg", "https://cdn.example.com/protocol-relative.jpg"),
    ("/images/site-relative.jpg", "https://news.example.com/images/site-relative.jpg"),
])
def test_meta_image_urls_resolve_against_page(content, expected):
    html = page(f'<meta property="og:image" content="{content}">')

    assert extract_page_image(html, PAGE_URL) == expected


def test_placeholders_rejected_from_page_sources():
    html = page(
        ld_json('{"image": "https://cdn.example.com/ogimage-tsun.png"}')
        + '<meta property="og:image" content="https://cdn.example.com/default-image.png">'
        + '<meta name="twitter:image" content="https://cdn.example.com/real.jpg">'
    )

    assert extract_page_image(html, PAGE_URL) == "https://cdn.example.com/real.jpg"


def test_page_without_image_returns_none():
    assert extract_page_image(page("<title>Nothing</title>"), PAGE_URL) is None


@pytest.mark.parametrize("url,usable", [
    ("https://cdn.example.com/photo.jpg", True),
    ("https://cdn.example.com/ogimage-tsun.png", False),
    ("https://cdn.example.com/assets/default-image.jpg", False),
    ("data:image/png;base64,AAAA", False),
    ("", False),
    (None, False),
])
def test_is_usable_image_url(url, usable):
    assert is_usable_image_url(url) is usable


def test_resolve_missing_only_touches_articles_without_images(make_source, make_article):
    source = make_source("Metro Post", BiasCategory.RIGHT)
    has_image = make_article(source, image_url="https://cdn.example.com/feed.jpg")
    needs_image = make_article(source)
    no_page = make_article(source)
    requested = []

    async def loader(url):
        requested.append(url)
        if url == needs_image.link:
            return page('<meta property="og:image" content="https://cdn.example.com/found.jpg">')
        return None

    async def run():
        async with ImageResolver(page_loader=loader) as resolver:
            return await resolver.resolve_missing([has_image, needs_image, no_page])

    resolved = asyncio.run(run())

    assert [a.image_url for a in resolved] == [
        "https://cdn.example.com/feed.jpg",
        "https://cdn.example.com/found.jpg",
        None,
    ]
    assert has_image.link not in requested
    # Originals are never mutated
    assert needs_image.image_url is None


def test_fetch_failures_yield_no_image(make_source, make_article):
    source = make_source("Metro Post", BiasCategory.RIGHT)
    articles = [make_article(source) for _ in range(3)]

    async def loader(url):
        raise ConnectionResetError("peer went away")

    async def run():
        async with ImageResolver(page_loader=loader) as resolver:
            return await resolver.resolve_missing(articles)

    resolved = asyncio.run(run())

    assert [a.image_url for a in resolved] == [None, None, None]


def test_batches_bound_concurrency(make_source, make_article):
    source = make_source("Metro Post", BiasCategory.RIGHT)
    articles = [make_article(source) for _ in range(7)]
    state = {"active": 0, "peak": 0}

    async def loader(url):
        state["active"] += 1
        state["peak"] = max(state["peak"], state["active"])
        await asyncio.sleep(0.01)
        state["active"] -= 1
        return page(f'<meta property="og:image" content="{url}.jpg">')

    async def run():
        async with ImageResolver(batch_size=3, page_loader=loader) as resolver:
            return await resolver.resolve_missing(articles)

    resolved = asyncio.run(run())

    assert state["peak"] == 3
    assert [a.image_url for a in resolved] == [f"{a.link}.jpg" for a in articles]
