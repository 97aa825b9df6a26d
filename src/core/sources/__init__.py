#!/usr/bin/env python3
"""
Source registry and feed parsing.

Registries supply the configured outlets; ``rss`` turns their feeds into
Article records.
"""

from .base import SourceRegistry, rows_to_sources, check_source_health
from .registry import StaticSourceRegistry, SupabaseSourceRegistry, build_source_registry

__all__ = [
    'SourceRegistry', 'rows_to_sources', 'check_source_health',
    'StaticSourceRegistry', 'SupabaseSourceRegistry', 'build_source_registry'
]
