#!/usr/bin/env python3
"""
Prompts for cross-source topic grouping and neutral synthesis.

This module centralizes the prompt templates sent to the classification
and generation capabilities. Both capabilities are expected to answer with
raw JSON only.
"""

from typing import List

from core.models.article import Article
from core.text_sanitizer import truncate


class TopicPrompts:
    """Collection of prompts for grouping and synthesis."""

    # ---------- GROUPING ----------
    GROUPING_SYSTEM_PROMPT = (
        "You are analyzing news headlines from outlets with different political leanings.\n"
        "Find stories about the SAME real-world event that are covered by at least 2 different sources "
        "and group them together.\n\n"
        "Rules:\n"
        "1. Read the numbered list of articles.\n"
        "2. Group articles describing the same event or topic across at least 2 different sources.\n"
        "3. Ignore stories covered by only 1 source.\n"
        "4. For each group give:\n"
        '   - "title": a neutral, descriptive title for the event\n'
        '   - "article_indices": the numbers (1-based) of the articles in the group\n'
        '   - "bias_summary": optional short note on how the sources framed it\n\n'
        "Output format: a JSON array of objects, for example:\n"
        '[{"title": "Transit Funding Bill Passes Senate", "article_indices": [1, 5, 12], '
        '"bias_summary": "One outlet focused on cost, another on ridership"}]\n\n'
        "IMPORTANT: Output ONLY the raw JSON array. Do not use markdown blocks. "
        "Do not include any explanatory text."
    )

    # ---------- SYNTHESIS ----------
    SYNTHESIS_SYSTEM_PROMPT = (
        "You are a strict senior news editor writing one comprehensive, neutral summary of an event "
        "from several sources.\n\n"
        "Formatting rules:\n"
        "1. ai_summary MUST contain exactly 6 paragraphs separated by a blank line (\\n\\n).\n"
        "2. No markdown headers or bold markers, only plain paragraphs.\n"
        "3. Do not cite, name or link to external sources or URLs inside ai_summary; attribution is "
        "stored separately.\n\n"
        "Paragraphs, in order:\n"
        "1. Lede: 1-2 sentences covering who, what, when, where, why and how.\n"
        "2. Key details: the main event or announcement in specifics.\n"
        "3. Statements: attributed quotes from officials, experts or witnesses.\n"
        "4. Context: background, statistics or history.\n"
        "5. Counterpoint: disagreements, criticism or alternative views.\n"
        "6. What happens next: upcoming steps, expected outcomes or implications.\n\n"
        "Return a JSON object with these fields:\n"
        '{"ai_summary": "paragraph 1\\n\\nparagraph 2 ...", '
        '"key_points": ["point 1", "point 2", "point 3"], '
        '"tags": ["tag1", "tag2"], '
        '"left_emphasis": "What left-leaning sources emphasize (1 sentence)", '
        '"right_emphasis": "What right-leaning sources emphasize (1 sentence)", '
        '"common_ground": "What all sources agree on (1 sentence)"}\n\n'
        "Return ONLY JSON, no markdown."
    )

    # ---------- Builders ----------

    @classmethod
    def format_listing_line(cls, number: int, article: Article, excerpt_length: int = 150) -> str:
        """One compact classifier line: ``n. title (source) - excerpt...``."""
        excerpt = truncate(article.description, excerpt_length) or "..."
        return f"{number}. {article.title} ({article.source_name}) - {excerpt}"

    @classmethod
    def get_grouping_prompt(cls, listing: str) -> str:
        return f"Articles:\n{listing}"

    @classmethod
    def get_synthesis_prompt(cls, articles: List[Article]) -> str:
        """User prompt carrying each member's excerpt, labelled by source."""
        excerpts = "\n\n".join(
            f"[{article.source_name}] {article.description or article.title}"
            for article in articles
        )
        return f"Summarize this news topic covered by multiple sources:\n{excerpts}"

