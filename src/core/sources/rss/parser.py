#!/usr/bin/env python3
"""
Tolerant RSS item parser.

Feeds in the wild are frequently not well-formed XML, so items are located
with structural patterns rather than a strict parser. Every item must carry
a title, a link and a publication timestamp; anything missing one of the
three is dropped whole.
"""

import re
import logging
from datetime import datetime
from typing import List, Optional, Dict

import pytz
from dateutil import parser as date_parser
from dateutil import tz

from core.models.article import Article
from core.models.source import Source
from core.text_sanitizer import clean_title, clean_description, decode_entities, strip_cdata
from core.content.image_resolver import is_usable_image_url

logger = logging.getLogger(__name__)

ITEM_PATTERN = re.compile(r'<item(?:\s[^>]*)?>(.*?)</item>', re.IGNORECASE | re.DOTALL)
TITLE_PATTERN = re.compile(r'<title(?:\s[^>]*)?>(.*?)</title>', re.IGNORECASE | re.DOTALL)
DESCRIPTION_PATTERN = re.compile(r'<description(?:\s[^>]*)?>(.*?)</description>', re.IGNORECASE | re.DOTALL)
LINK_PATTERN = re.compile(r'<link(?:\s[^>/]*)?>(.*?)</link>', re.IGNORECASE | re.DOTALL)
PUBDATE_PATTERN = re.compile(r'<pubDate(?:\s[^>]*)?>(.*?)</pubDate>', re.IGNORECASE | re.DOTALL)
DC_DATE_PATTERN = re.compile(r'<dc:date(?:\s[^>]*)?>(.*?)</dc:date>', re.IGNORECASE | re.DOTALL)
GUID_PATTERN = re.compile(r'<guid(?:\s[^>]*)?>(.*?)</guid>', re.IGNORECASE | re.DOTALL)
CONTENT_ENCODED_PATTERN = re.compile(r'<content:encoded(?:\s[^>]*)?>(.*?)</content:encoded>', re.IGNORECASE | re.DOTALL)

MEDIA_CONTENT_PATTERN = re.compile(r'<media:content\b[^>]*>', re.IGNORECASE)
ENCLOSURE_PATTERN = re.compile(r'<enclosure\b[^>]*>', re.IGNORECASE)
MEDIA_THUMBNAIL_PATTERN = re.compile(r'<media:thumbnail\b[^>]*>', re.IGNORECASE)
IMG_SRC_PATTERN = re.compile(r'<img[^>]+src=["\']([^"\']+)["\']', re.IGNORECASE)
ATTRIBUTE_PATTERN = re.compile(r'([\w:-]+)\s*=\s*["\']([^"\']*)["\']')

# RFC 822 and common North American zone abbreviations, as fixed offsets
ZONE_OFFSETS_HOURS = {
    'AST': -4, 'ADT': -3,
    'EST': -5, 'EDT': -4,
    'CST': -6, 'CDT': -5,
    'MST': -7, 'MDT': -6,
    'PST': -8, 'PDT': -7,
    'AKST': -9, 'AKDT': -8,
    'NST': -3.5, 'NDT': -2.5,
}
FEED_TZINFOS = {
    name: tz.tzoffset(name, int(hours * 3600)) for name, hours in ZONE_OFFSETS_HOURS.items()
}


def _first_group(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def _tag_attributes(tag: str) -> Dict[str, str]:
    return {name.lower(): value for name, value in ATTRIBUTE_PATTERN.findall(tag)}


def _clean_image_url(candidate: Optional[str]) -> Optional[str]:
    if not candidate:
        return None
    url = decode_entities(candidate.strip())
    return url if is_usable_image_url(url) else None


def _from_media_content(item_xml: str) -> Optional[str]:
    for tag in MEDIA_CONTENT_PATTERN.findall(item_xml):
        url = _clean_image_url(_tag_attributes(tag).get('url'))
        if url:
            return url
    return None


def _from_image_enclosure(item_xml: str) -> Optional[str]:
    for tag in ENCLOSURE_PATTERN.findall(item_xml):
        attrs = _tag_attributes(tag)
        if not attrs.get('type', '').lower().startswith('image'):
            continue
        url = _clean_image_url(attrs.get('url'))
        if url:
            return url
    return None


def _from_media_thumbnail(item_xml: str) -> Optional[str]:
    for tag in MEDIA_THUMBNAIL_PATTERN.findall(item_xml):
        url = _clean_image_url(_tag_attributes(tag).get('url'))
        if url:
            return url
    return None


def _from_embedded_img(block: Optional[str]) -> Optional[str]:
    if not block:
        return None
    # Embedded HTML is usually escaped inside the feed
    markup = decode_entities(strip_cdata(block))
    for src in IMG_SRC_PATTERN.findall(markup):
        url = _clean_image_url(src)
        if url:
            return url
    return None


def extract_item_image(item_xml: str) -> Optional[str]:
    """
    Find a representative image in an item's own markup.

    First match wins, in this order: media:content, an image-typed
    enclosure, media:thumbnail, an <img> inside content:encoded, an <img>
    inside the description. Placeholder images never match.
    """
    image_url = (
        _from_media_content(item_xml)
        or _from_image_enclosure(item_xml)
        or _from_media_thumbnail(item_xml)
        or _from_embedded_img(_first_group(CONTENT_ENCODED_PATTERN, item_xml))
        or _from_embedded_img(_first_group(DESCRIPTION_PATTERN, item_xml))
    )
    return image_url


def parse_published_date(raw: Optional[str]) -> Optional[datetime]:
    """Parse a feed timestamp into an aware UTC datetime."""
    if not raw:
        return None
    try:
        dt = date_parser.parse(raw, tzinfos=FEED_TZINFOS)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Failed to parse date '{raw}': {e}")
        return None

    if dt.tzinfo is None:
        # Assume UTC if no timezone info
        dt = pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


class RSSParser:
    """Extracts Article records from raw feed text."""

    def parse_items(self, xml_text: str, source: Source) -> List[Article]:
        """
        Parse every item of a feed document, in document order.

        Args:
            xml_text: Raw feed document
            source: Source the document was fetched from

        Returns:
            List of articles; incomplete items are skipped
        """
        articles = []
        discarded = 0

        if not xml_text:
            logger.warning(f"Empty feed document for {source.name}")
            return articles

        item_blocks = ITEM_PATTERN.findall(xml_text)
        if not item_blocks:
            logger.warning(f"No items found in feed for {source.name}")
            return articles

        for item_xml in item_blocks:
            article = self.parse_item(item_xml, source)
            if article is None:
                discarded += 1
                continue
            articles.append(article)

        if discarded:
            logger.info(f"Discarded {discarded} incomplete items from {source.name}")
        logger.debug(f"Parsed {len(articles)} items from {source.name}")
        return articles

    def parse_item(self, item_xml: str, source: Source) -> Optional[Article]:
        """Parse a single item block; returns None if a required field is missing."""
        title = clean_title(_first_group(TITLE_PATTERN, item_xml))
        link = clean_title(_first_group(LINK_PATTERN, item_xml))
        raw_published = _first_group(PUBDATE_PATTERN, item_xml) or _first_group(DC_DATE_PATTERN, item_xml)
        raw_published = clean_title(raw_published)
        published_at = parse_published_date(raw_published)

        if not title or not link or published_at is None:
            logger.debug(f"Skipping item from {source.name}: title={bool(title)} link={bool(link)} "
                         f"published={published_at is not None}")
            return None

        return Article(
            title=title,
            link=link,
            published_at=published_at,
            source=source,
            description=clean_description(_first_group(DESCRIPTION_PATTERN, item_xml)),
            guid=clean_title(_first_group(GUID_PATTERN, item_xml)),
            image_url=extract_item_image(item_xml),
            raw_published_str=raw_published,
        )
