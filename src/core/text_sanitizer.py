#!/usr/bin/env python3
"""
Text sanitization utilities for feed content.

Feed fields arrive with CDATA wrappers, character references and embedded
markup; these helpers turn them into plain display text.
"""

import re
import html
import logging
from typing import Optional

logger = logging.getLogger(__name__)

CDATA_PATTERN = re.compile(r'<!\[CDATA\[|\]\]>')
TAG_PATTERN = re.compile(r'<[^>]+>')
WHITESPACE_PATTERN = re.compile(r'\s+')


def strip_cdata(text: Optional[str]) -> Optional[str]:
    """Remove CDATA section markers, keeping their content."""
    if not text:
        return text
    return CDATA_PATTERN.sub('', text)


def decode_entities(text: Optional[str]) -> Optional[str]:
    """
    Decode character references (``&amp;``, ``&lt;``, ``&#8217;`` ...).

    Feeds frequently double-escape, so ``&amp;lt;`` needs two passes to
    become ``<``. Decoding stops once the text no longer changes.
    """
    if not text:
        return text

    decoded = text
    for _ in range(2):
        unescaped = html.unescape(decoded)
        if unescaped == decoded:
            break
        decoded = unescaped
    return decoded


def strip_markup(text: Optional[str]) -> Optional[str]:
    """Drop embedded tags and collapse whitespace."""
    if not text:
        return text
    without_tags = TAG_PATTERN.sub(' ', text)
    return WHITESPACE_PATTERN.sub(' ', without_tags).strip()


def clean_title(raw: Optional[str]) -> str:
    """Normalize a feed title into plain text."""
    if not raw:
        return ""
    return WHITESPACE_PATTERN.sub(' ', decode_entities(strip_cdata(raw))).strip()


def clean_description(raw: Optional[str]) -> str:
    """
    Normalize a feed description into plain text.

    Entities are decoded before markup is stripped so that escaped HTML
    (``&lt;p&gt;``) is removed along with literal tags.
    """
    if not raw:
        return ""
    return strip_markup(decode_entities(strip_cdata(raw))) or ""


def truncate(text: Optional[str], limit: int, suffix: str = "...") -> str:
    """Cut text to ``limit`` characters, appending ``suffix``."""
    if not text:
        return ""
    return f"{text[:limit]}{suffix}"
