#!/usr/bin/env python3
"""
Topic command endpoints: run the cross-source topic pipeline.
"""

import json
import logging
from argparse import Namespace

from core.pipeline import run_pipeline
from core.publisher import InMemoryTopicStore
from .base import BaseCommand

logger = logging.getLogger(__name__)


class TopicsCommand(BaseCommand):
    """Run the ingestion, grouping and synthesis pipeline."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute topics subcommand."""
        try:
            if subcommand == "run":
                return self.run(args)
            else:
                available = ", ".join(self.get_available_subcommands())
                self.logger.error(f"Unknown subcommand '{subcommand}'. Available: {available}")
                return 1

        except Exception as e:
            return self.handle_error(e, f"topics {subcommand}")

    def run(self, args: Namespace) -> int:
        """Run the pipeline once and print the JSON run summary."""
        dry_run = getattr(args, 'dry_run', False)
        sources_file = getattr(args, 'sources_file', None)

        if getattr(args, 'verbose', False):
            logging.getLogger().setLevel(logging.DEBUG)

        store = InMemoryTopicStore() if dry_run else None
        summary = run_pipeline(
            dry_run=dry_run,
            sources_file=sources_file,
            store=store,
            container=self.container,
        )

        output = summary.to_dict()
        if store is not None:
            output['dry_run'] = store.to_dict()
        print(json.dumps(output, indent=2, ensure_ascii=False))

        if not summary.success:
            self.logger.error(f"Topic run failed: {summary.error}")
            return 1
        return 0
