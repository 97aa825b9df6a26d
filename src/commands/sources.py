#!/usr/bin/env python3
"""
Source command endpoints: inspect the registry and feed availability.
"""

import logging
from argparse import Namespace

from core.sources import build_source_registry, check_source_health
from .base import BaseCommand

logger = logging.getLogger(__name__)


class SourcesCommand(BaseCommand):
    """Inspect configured news sources."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute sources subcommand."""
        try:
            if subcommand == "list":
                return self.list(args)
            elif subcommand == "check":
                return self.check(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except Exception as e:
            return self.handle_error(e, f"sources {subcommand}")

    def _registry(self, args: Namespace):
        sources_file = getattr(args, 'sources_file', None)
        client = None
        if not (sources_file or self.config.app.sources_file):
            client = self.container.get('supabase_client')
        return build_source_registry(self.config, sources_file, client)

    def list(self, args: Namespace) -> int:
        """Print active, non-denylisted sources."""
        sources = self._registry(args).list_active_sources()

        print(f"=== Active Sources ({len(sources)}) ===")
        for source in sources:
            print(f"  [{source.bias.value:<6}] {source.name} - {source.feed_url}")
        return 0

    def check(self, args: Namespace) -> int:
        """HEAD every active feed and report availability."""
        sources = self._registry(args).list_active_sources()
        timeout = self.config.app.feed_timeout

        print(f"Checking {len(sources)} feeds...")
        failures = 0
        for source in sources:
            status = check_source_health(source, timeout=timeout)
            if status['available']:
                print(f"  OK   {source.name} ({status['status_code']}, {status['response_time_ms']}ms)")
            else:
                failures += 1
                detail = status.get('error') or f"HTTP {status.get('status_code')}"
                print(f"  FAIL {source.name} ({detail})")

        print(f"\n{len(sources) - failures}/{len(sources)} feeds available")
        return 0 if failures == 0 else 1
