#!/usr/bin/env python3
"""
Topic data models.

Candidate groups come out of the classifier, validated groups out of the
diversity gate, and topics out of synthesis.
"""

import hashlib
import re
from datetime import datetime
from typing import List, Dict, Any, Optional, Iterable
from dataclasses import dataclass, field

from .article import Article
from .source import BiasCategory

NARRATIVE_SECTIONS = (
    'lede',
    'key_details',
    'statements',
    'context',
    'counterpoint',
    'whats_next',
)


@dataclass
class CandidateGroup:
    """An unvalidated cluster proposed by the classifier (0-based indices)."""
    label: str
    member_indices: List[int] = field(default_factory=list)
    bias_summary: str = ""


@dataclass(frozen=True)
class BiasCounts:
    """Per-category count of unique sources in a group."""
    left: int = 0
    center: int = 0
    right: int = 0

    @classmethod
    def from_articles(cls, articles: Iterable[Article]) -> 'BiasCounts':
        counts = {category: 0 for category in BiasCategory}
        for article in articles:
            counts[article.source.bias] += 1
        return cls(
            left=counts[BiasCategory.LEFT],
            center=counts[BiasCategory.CENTER],
            right=counts[BiasCategory.RIGHT],
        )

    @property
    def nonzero_categories(self) -> int:
        return sum(1 for count in (self.left, self.center, self.right) if count > 0)

    def to_dict(self) -> Dict[str, int]:
        return {'left': self.left, 'center': self.center, 'right': self.right}


@dataclass
class ValidatedGroup:
    """A candidate group that passed the diversity gate."""
    label: str
    articles: List[Article]
    bias_counts: BiasCounts

    @property
    def topic_key(self) -> str:
        """Slugged label plus a digest of member links."""
        slug = re.sub(r'[^a-z0-9]+', '-', self.label.lower()).strip('-')[:60] or 'topic'
        digest = hashlib.md5('|'.join(a.link for a in self.articles).encode()).hexdigest()[:8]
        return f"{slug}-{digest}"


@dataclass
class Synthesis:
    """Writer output after contract enforcement."""
    narrative: str
    sections: List[str]
    key_points: List[str]
    tags: List[str]
    left_emphasis: str
    right_emphasis: str
    common_ground: str

    def section(self, name: str) -> Optional[str]:
        """Look up a narrative section by its structural name."""
        index = NARRATIVE_SECTIONS.index(name)
        return self.sections[index] if index < len(self.sections) else None


@dataclass
class Topic:
    """A published, cross-source, bias-diverse synthesis of one event."""
    topic_key: str
    headline: str
    narrative: str
    sections: List[str]
    key_points: List[str]
    tags: List[str]
    bias_counts: BiasCounts
    left_emphasis: str
    right_emphasis: str
    common_ground: str
    published_at: datetime
    articles: List[Article]
    thumbnail_url: Optional[str] = None
    is_featured: bool = False

    @classmethod
    def from_group(cls, group: ValidatedGroup, synthesis: Synthesis) -> 'Topic':
        thumbnail = next((a.image_url for a in group.articles if a.image_url), None)
        return cls(
            topic_key=group.topic_key,
            headline=group.label,
            narrative=synthesis.narrative,
            sections=list(synthesis.sections),
            key_points=list(synthesis.key_points),
            tags=sorted(set(synthesis.tags)),
            bias_counts=group.bias_counts,
            left_emphasis=synthesis.left_emphasis,
            right_emphasis=synthesis.right_emphasis,
            common_ground=synthesis.common_ground,
            published_at=group.articles[0].published_at,
            articles=list(group.articles),
            thumbnail_url=thumbnail,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'topic_key': self.topic_key,
            'headline': self.headline,
            'narrative': self.narrative,
            'key_points': self.key_points,
            'tags': self.tags,
            'bias_counts': self.bias_counts.to_dict(),
            'left_emphasis': self.left_emphasis,
            'right_emphasis': self.right_emphasis,
            'common_ground': self.common_ground,
            'thumbnail_url': self.thumbnail_url,
            'published_at': self.published_at.isoformat(),
            'is_featured': self.is_featured,
            'article_links': [a.link for a in self.articles],
        }
