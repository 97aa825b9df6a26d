#!/usr/bin/env python3
"""
Collaborator interfaces for the external classification and generation
capabilities.

Implementations return the capability's raw text. Output is untrusted:
the grouping and synthesis stages locate and validate the payload
themselves, so any provider can be swapped in without touching them.
"""

from abc import ABC, abstractmethod
from typing import List

from core.models.article import Article


class TopicClassifier(ABC):
    """Clusters an enumerated article listing into candidate topics."""

    @abstractmethod
    def cluster(self, listing: str) -> str:
        """
        Cluster articles into candidate groups.

        Args:
            listing: One line per article, ``n. title (source) - excerpt...``,
                numbered from 1

        Returns:
            Raw response text expected to hold a JSON array of
            ``{title, article_indices, bias_summary?}`` objects

        Raises:
            CapabilityError: If the capability could not be invoked
        """
        pass


class TopicWriter(ABC):
    """Writes the neutral six-section narrative for one validated topic."""

    @abstractmethod
    def synthesize(self, articles: List[Article]) -> str:
        """
        Synthesize a topic narrative.

        Args:
            articles: Deduplicated member articles, one per source

        Returns:
            Raw response text expected to hold one JSON object with
            ``ai_summary``, ``key_points``, ``tags``, ``left_emphasis``,
            ``right_emphasis`` and ``common_ground``

        Raises:
            CapabilityError: If the capability could not be invoked
        """
        pass
