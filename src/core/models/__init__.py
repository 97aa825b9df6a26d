#!/usr/bin/env python3
"""
Core data models for the topic pipeline.

Contains all data structures passed between pipeline stages.
"""

from .source import Source, BiasCategory
from .article import Article
from .topic import CandidateGroup, BiasCounts, ValidatedGroup, Synthesis, Topic, NARRATIVE_SECTIONS
from .run import RunContext, RunSummary, StageTiming

__all__ = [
    'Source', 'BiasCategory', 'Article', 'CandidateGroup', 'BiasCounts',
    'ValidatedGroup', 'Synthesis', 'Topic', 'NARRATIVE_SECTIONS',
    'RunContext', 'RunSummary', 'StageTiming',
]
