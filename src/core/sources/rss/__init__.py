#!/usr/bin/env python3
"""
RSS feed parsing.

Provides tolerant item extraction and the feed image chain.
"""

from .parser import RSSParser, extract_item_image, parse_published_date

__all__ = ['RSSParser', 'extract_item_image', 'parse_published_date']
