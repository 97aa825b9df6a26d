#!/usr/bin/env python3
"""
Source data model.

A configured news outlet with an editorial-bias category and a feed address.
"""

from enum import Enum
from typing import Dict, Any, Optional
from dataclasses import dataclass

FALSE_STRINGS = ('false', '0', 'no', 'off', '')


def _as_flag(value: Any) -> bool:
    """Interpret a JSON or database flag; strings such as 'false' or '0' are false."""
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


class BiasCategory(Enum):
    """Editorial leaning assigned per source, never per article."""
    LEFT = "Left"
    CENTER = "Center"
    RIGHT = "Right"

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional['BiasCategory']:
        """Parse a stored bias rating; returns None for anything unrecognised."""
        if not label:
            return None
        normalized = label.strip().lower()
        aliases = {
            'left': cls.LEFT,
            'center': cls.CENTER,
            'centre': cls.CENTER,
            'right': cls.RIGHT,
        }
        return aliases.get(normalized)


@dataclass(frozen=True)
class Source:
    """
    A news outlet taking part in a run.

    ``source_id`` is the stable identity used for deduplication; ``name`` is
    only a display label and may repeat across configured sources.
    """
    source_id: str
    name: str
    feed_url: str
    bias: BiasCategory
    active: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Source':
        """
        Build a Source from a registry row.

        Raises:
            ValueError: If the row has no feed URL or an unknown bias rating
        """
        name = (data.get('name') or '').strip()
        feed_url = (data.get('rss_feed_url') or data.get('feed_url') or '').strip()
        bias = BiasCategory.from_label(data.get('bias_rating') or data.get('bias'))

        if not name or not feed_url:
            raise ValueError(f"Source row missing name or feed URL: {data!r}")
        if bias is None:
            raise ValueError(f"Source '{name}' has unknown bias rating {data.get('bias_rating')!r}")

        source_id = data.get('id')
        return cls(
            source_id=str(source_id) if source_id is not None else feed_url,
            name=name,
            feed_url=feed_url,
            bias=bias,
            active=_as_flag(data.get('is_active', data.get('active', True))),
        )
