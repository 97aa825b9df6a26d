#!/usr/bin/env python3
"""
Base classes for the source registry.

A registry supplies the configured sources; this module applies the
active flag and the name denylist on top of whatever the backend returns.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Iterable

import requests

from core.models.source import Source

logger = logging.getLogger(__name__)


def rows_to_sources(rows: Iterable[Dict[str, Any]]) -> List[Source]:
    """
    Convert registry rows to Source objects.

    Rows with a missing feed URL or an unknown bias rating are skipped
    with a warning rather than failing the whole registry.
    """
    sources = []
    for row in rows:
        try:
            sources.append(Source.from_dict(row))
        except ValueError as e:
            logger.warning(f"Skipping invalid source row: {e}")
    return sources


class SourceRegistry(ABC):
    """
    Abstract base class for source registries.

    Implementations only need to load the configured sources; filtering
    happens in ``list_active_sources``.
    """

    def __init__(self, denylist: Optional[Iterable[str]] = None):
        """
        Initialize source registry.

        Args:
            denylist: Name fragments of outlets never included in a run
        """
        self.denylist = [entry.strip() for entry in (denylist or []) if entry and entry.strip()]

    @abstractmethod
    def load_sources(self) -> List[Source]:
        """
        Load every configured source, active or not.

        Raises:
            SourceError: If the backing collaborator cannot be read
        """
        pass

    def is_denied(self, source: Source) -> bool:
        """Check the source name against the denylist (case-insensitive substring)."""
        name = source.name.lower()
        return any(entry.lower() in name for entry in self.denylist)

    def list_active_sources(self) -> List[Source]:
        """Active, non-denylisted sources in registry order."""
        sources = self.load_sources()
        active = [source for source in sources if source.active]
        allowed = [source for source in active if not self.is_denied(source)]

        denied = len(active) - len(allowed)
        if denied:
            logger.info(f"Excluded {denied} denylisted sources")
        logger.info(f"Registry returned {len(allowed)} active sources ({len(sources)} configured)")
        return allowed


def check_source_health(source: Source, timeout: int = 10) -> Dict[str, Any]:
    """Check feed availability with a HEAD request."""
    try:
        response = requests.head(source.feed_url, timeout=timeout, allow_redirects=True)
        return {
            'source': source.name,
            'available': response.status_code == 200,
            'status_code': response.status_code,
            'response_time_ms': round(response.elapsed.total_seconds() * 1000, 1)
        }
    except requests.RequestException as e:
        return {
            'source': source.name,
            'available': False,
            'error': str(e)
        }
