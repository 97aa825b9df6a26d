#!/usr/bin/env python3
"""
Article data model.

Represents one normalized feed item, tagged with its originating source.
"""

from datetime import datetime
from typing import Dict, Any, Optional
from dataclasses import dataclass, replace

from .source import Source


@dataclass
class Article:
    """
    A single news item extracted from a source's feed.

    ``link`` is the natural identity key; ``guid`` is a secondary hint and
    falls back to the link when the feed does not carry one.
    """
    title: str
    link: str
    published_at: datetime
    source: Source
    description: str = ""
    guid: str = ""
    image_url: Optional[str] = None

    # Metadata
    raw_published_str: Optional[str] = None

    def __post_init__(self):
        """Clean data after initialization."""
        self.title = self.title.strip()
        self.link = self.link.strip()
        self.description = (self.description or "").strip()
        self.guid = (self.guid or "").strip() or self.link

    @property
    def source_name(self) -> str:
        return self.source.name

    def with_image(self, image_url: Optional[str]) -> 'Article':
        """Return an enriched copy; the original record is left untouched."""
        return replace(self, image_url=image_url)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging and JSON serialization."""
        return {
            'title': self.title,
            'link': self.link,
            'guid': self.guid,
            'description': self.description,
            'published_at': self.published_at.isoformat(),
            'image_url': self.image_url,
            'source': self.source.name,
            'source_id': self.source.source_id,
            'source_bias': self.source.bias.value,
            'raw_published_str': self.raw_published_str,
        }

    def __repr__(self):
        return f"Article(title='{self.title[:50]}...', source='{self.source.name}')"
