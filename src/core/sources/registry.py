#!/usr/bin/env python3
"""
Source registry backends.

Sources come either from a static list (in code or a JSON file) or from the
``news_sources`` table of the configuration store.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from core.config import Config
from core.env_loader import PROJECT_ROOT
from core.exceptions import ConfigurationError, SourceError
from core.models.source import Source
from .base import SourceRegistry, rows_to_sources

logger = logging.getLogger(__name__)


class StaticSourceRegistry(SourceRegistry):
    """Registry over a fixed list of sources."""

    def __init__(self, sources: Iterable[Source], denylist: Optional[Iterable[str]] = None):
        super().__init__(denylist)
        self._sources = list(sources)

    def load_sources(self) -> List[Source]:
        return list(self._sources)

    @classmethod
    def from_rows(cls, rows: Iterable[Dict[str, Any]],
                  denylist: Optional[Iterable[str]] = None) -> 'StaticSourceRegistry':
        return cls(rows_to_sources(rows), denylist)

    @classmethod
    def from_file(cls, path: str, denylist: Optional[Iterable[str]] = None) -> 'StaticSourceRegistry':
        """
        Load sources from a JSON file.

        The file holds either a list of source rows or an object with a
        ``sources`` list. Relative paths resolve against the project root.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        file_path = Path(path)
        if not file_path.is_absolute():
            file_path = PROJECT_ROOT / file_path

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ConfigurationError('SOURCES_FILE', f"{file_path} does not exist")
        except json.JSONDecodeError as e:
            raise ConfigurationError('SOURCES_FILE', f"{file_path} is not valid JSON: {e}")

        rows = data.get('sources', []) if isinstance(data, dict) else data
        if not isinstance(rows, list):
            raise ConfigurationError('SOURCES_FILE', "expected a list of sources")

        logger.info(f"Loaded {len(rows)} source rows from {file_path}")
        return cls.from_rows(rows, denylist)


class SupabaseSourceRegistry(SourceRegistry):
    """Registry backed by the ``news_sources`` table."""

    TABLE = 'news_sources'

    def __init__(self, client, denylist: Optional[Iterable[str]] = None):
        """
        Initialize Supabase-backed registry.

        Args:
            client: Supabase client
            denylist: Name fragments of outlets never included in a run
        """
        super().__init__(denylist)
        self.client = client

    def load_sources(self) -> List[Source]:
        try:
            result = (self.client.table(self.TABLE)
                      .select('*')
                      .eq('is_active', True)
                      .execute())
        except Exception as e:
            logger.error(f"Failed to read {self.TABLE}: {e}")
            raise SourceError(f"Failed to load sources from {self.TABLE}",
                              context={'original_error': str(e)})

        return rows_to_sources(result.data or [])


def build_source_registry(config: Config, sources_file: Optional[str] = None,
                          client=None) -> SourceRegistry:
    """
    Pick the registry backend for a run.

    An explicit or configured sources file wins; otherwise the store's
    ``news_sources`` table is used.

    Raises:
        ConfigurationError: If neither backend is available
    """
    denylist = config.app.source_denylist
    path = sources_file or config.app.sources_file
    if path:
        return StaticSourceRegistry.from_file(path, denylist)

    if client is None:
        if not config.has_store():
            raise ConfigurationError('SUPABASE_URL', "no sources file given and no store configured")
        from core.supabase_adapter import create_supabase_client
        client = create_supabase_client(config.store)

    return SupabaseSourceRegistry(client, denylist)
