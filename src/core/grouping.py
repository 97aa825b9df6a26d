#!/usr/bin/env python3
"""
Article aggregation and topic grouping.

The corpus is flattened from per-source article lists, listed compactly for
the classification capability, and the capability's answer is parsed into
candidate groups. The listing is numbered from 1, so returned indices are
shifted to 0-based corpus positions here; range checks happen in the
diversity gate.
"""

import logging
from typing import Any, Iterable, List, Optional

from core.capabilities import TopicClassifier
from core.exceptions import CapabilityError
from core.json_validator import extract_json_array, JSONValidationError
from core.models.article import Article
from core.models.run import RunContext
from core.models.topic import CandidateGroup
from core.prompts import TopicPrompts

logger = logging.getLogger(__name__)

LABEL_KEYS = ('title', 'topic')
INDEX_KEYS = ('article_indices', 'articleIndexes', 'article_indexes')


def aggregate(per_source_articles: Iterable[List[Article]]) -> List[Article]:
    """Flatten per-source article lists into one corpus, preserving order."""
    corpus: List[Article] = []
    for articles in per_source_articles:
        corpus.extend(articles)
    return corpus


def build_listing(corpus: List[Article], excerpt_length: int = 150) -> str:
    """Enumerate the corpus for the classifier, one line per article."""
    return "\n".join(
        TopicPrompts.format_listing_line(number, article, excerpt_length)
        for number, article in enumerate(corpus, 1)
    )


def _first_present(item: dict, keys) -> Any:
    for key in keys:
        if key in item:
            return item[key]
    return None


def _coerce_index(value: Any) -> Optional[int]:
    # bool is an int subclass but never a valid index
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_candidate_groups(raw_output: str) -> List[CandidateGroup]:
    """
    Parse classifier output into candidate groups.

    Malformed entries (no label, no index list) are skipped individually;
    non-integer indices are dropped.

    Raises:
        JSONValidationError: If no JSON array can be recovered at all
    """
    items = extract_json_array(raw_output)
    groups = []

    for position, item in enumerate(items, 1):
        if not isinstance(item, dict):
            logger.warning(f"Skipping group #{position}: expected an object, got {type(item).__name__}")
            continue

        label = _first_present(item, LABEL_KEYS)
        if not isinstance(label, str) or not label.strip():
            logger.warning(f"Skipping group #{position}: missing title")
            continue

        raw_indices = _first_present(item, INDEX_KEYS)
        if not isinstance(raw_indices, list):
            logger.warning(f"Skipping group '{label}': missing article_indices")
            continue

        member_indices = []
        for value in raw_indices:
            number = _coerce_index(value)
            if number is None:
                logger.debug(f"Ignoring non-integer index {value!r} in group '{label}'")
                continue
            member_indices.append(number - 1)

        bias_summary = item.get('bias_summary')
        groups.append(CandidateGroup(
            label=label.strip(),
            member_indices=member_indices,
            bias_summary=bias_summary.strip() if isinstance(bias_summary, str) else "",
        ))

    return groups


class TopicGrouper:
    """Clusters the corpus into candidate topics through the classifier."""

    def __init__(self, classifier: TopicClassifier, excerpt_length: int = 150):
        self.classifier = classifier
        self.excerpt_length = excerpt_length

    def group(self, ctx: RunContext, corpus: List[Article]) -> List[CandidateGroup]:
        """
        Produce candidate groups for the corpus.

        Never raises: an invocation failure of any kind or unrecoverable
        output yields zero groups and an entry in the run log.
        """
        if not corpus:
            ctx.log("No articles collected, skipping grouping")
            return []

        ctx.log(f"Generating grouping for {len(corpus)} articles...")
        listing = build_listing(corpus, self.excerpt_length)

        try:
            raw_output = self.classifier.cluster(listing)
        except CapabilityError as e:
            ctx.error(f"Topic grouping failed: {e.message}")
            return []
        except Exception as e:
            logger.exception("Classifier raised an unexpected error")
            ctx.error(f"Topic grouping failed: {e}")
            return []

        try:
            groups = parse_candidate_groups(raw_output)
        except JSONValidationError as e:
            logger.debug(f"Raw grouping output: {(raw_output or '')[:500]!r}")
            ctx.error(f"Failed to group articles ({e}); continuing with no topics")
            return []

        ctx.log(f"Identified {len(groups)} candidate topics")
        return groups
