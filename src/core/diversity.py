#!/usr/bin/env python3
"""
Diversity gate.

A candidate group only becomes a topic when it is covered by enough
distinct sources and those sources span enough bias categories.
"""

import logging
from typing import List, Optional

from core.models.article import Article
from core.models.run import RunContext
from core.models.topic import BiasCounts, CandidateGroup, ValidatedGroup

logger = logging.getLogger(__name__)


def dedupe_by_source(articles: List[Article]) -> List[Article]:
    """Keep the first article seen per source identity, in input order."""
    seen = set()
    unique = []
    for article in articles:
        if article.source.source_id in seen:
            continue
        seen.add(article.source.source_id)
        unique.append(article)
    return unique


class DiversityGate:
    """Applies the source-count and bias-category thresholds to a group."""

    def __init__(self, min_unique_sources: int = 2, min_bias_categories: int = 2):
        self.min_unique_sources = min_unique_sources
        self.min_bias_categories = min_bias_categories

    def evaluate(self, ctx: RunContext, group: CandidateGroup,
                 corpus: List[Article]) -> Optional[ValidatedGroup]:
        """
        Validate one candidate group.

        Steps, in order: resolve indices (dropping out-of-range ones),
        deduplicate by source, require enough unique sources, count bias
        categories, require enough non-zero categories.

        Returns:
            The validated group, or None if it must not be published
        """
        resolved = [corpus[index] for index in group.member_indices if 0 <= index < len(corpus)]
        dropped = len(group.member_indices) - len(resolved)
        if dropped:
            logger.warning(f"Ignoring {dropped} out-of-range indices in '{group.label}'")

        unique = dedupe_by_source(resolved)
        if len(unique) < self.min_unique_sources:
            ctx.log(f"Skipping {group.label} - only {len(unique)} unique sources")
            return None

        bias_counts = BiasCounts.from_articles(unique)
        categories = bias_counts.nonzero_categories
        if categories < self.min_bias_categories:
            ctx.log(f"Skipping {group.label} - only {categories} bias "
                    f"{'category' if categories == 1 else 'categories'} "
                    f"(need {self.min_bias_categories}+)")
            return None

        return ValidatedGroup(label=group.label, articles=unique, bias_counts=bias_counts)
