#!/usr/bin/env python3
"""
CLI Router for the cross-source topic pipeline.

Maps ``<command> <subcommand> [options]`` onto the command classes in
``commands``.
"""

import argparse
import logging
import sys
from typing import Optional, List

# Load environment variables first
import core.env_loader  # Auto-loads .env file

from commands import get_command, COMMANDS

logger = logging.getLogger(__name__)

SOURCES_FILE_HELP = 'JSON file of sources (overrides the news_sources table)'

EXAMPLES = """
Examples:
  # Scheduled run (publishes to Supabase)
  python run.py topics run

  # Local run without store writes
  python run.py topics run --dry-run --sources-file sources.json --verbose

  # Source registry
  python run.py sources list
  python run.py sources check
"""


class CLIRouter:
    """
    Argument parsing and dispatch for the topic pipeline commands.

    - python run.py topics run [--dry-run] [--sources-file PATH] [--verbose]
    - python run.py sources list [--sources-file PATH]
    - python run.py sources check [--sources-file PATH]
    """

    def __init__(self, container=None):
        self.container = container
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Cross-source news topic pipeline",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=EXAMPLES
        )
        commands = parser.add_subparsers(dest='command', metavar='{command}', help='Available commands')

        topics = commands.add_parser('topics', help='Run the ingestion, grouping and synthesis pipeline')
        topic_actions = topics.add_subparsers(dest='subcommand', metavar='{run}')
        run_parser = topic_actions.add_parser('run', help='Run the pipeline once and print the run summary')
        run_parser.add_argument('--dry-run', action='store_true', help='Publish to memory instead of Supabase')
        run_parser.add_argument('--sources-file', default=None, help=SOURCES_FILE_HELP)
        run_parser.add_argument('--verbose', action='store_true', help='Debug-level logging')

        sources = commands.add_parser('sources', help='Source registry operations')
        source_actions = sources.add_subparsers(dest='subcommand', metavar='{list,check}')
        for name, help_text in (('list', 'List active sources'), ('check', 'Check feed availability')):
            action = source_actions.add_parser(name, help=help_text)
            action.add_argument('--sources-file', default=None, help=SOURCES_FILE_HELP)

        return parser

    def route_command(self, args: Optional[List[str]] = None) -> int:
        """
        Parse ``args`` (``sys.argv[1:]`` by default) and run the command.

        Returns:
            Process exit code
        """
        try:
            parsed = self.parser.parse_args(sys.argv[1:] if args is None else args)
        except SystemExit as e:
            # --help and usage errors
            return e.code if isinstance(e.code, int) else 0

        if not parsed.command:
            self.parser.print_help()
            return 1
        if parsed.command not in COMMANDS:
            logger.error(f"Unknown command '{parsed.command}'. Available: {', '.join(COMMANDS)}")
            return 1

        subcommand = getattr(parsed, 'subcommand', None)
        if not subcommand:
            logger.error(f"'{parsed.command}' needs a subcommand, see: python run.py {parsed.command} --help")
            return 1

        try:
            return get_command(parsed.command, self.container).execute(subcommand, parsed)
        except Exception as e:
            logger.error(f"{parsed.command} {subcommand} failed: {e}", exc_info=True)
            return 1


def main(args: Optional[List[str]] = None) -> int:
    """Console entry point: configure logging, then route."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # LOG_LEVEL / VERBOSE_LOGGING apply only when the configuration is valid
    try:
        from core.config import get_config_manager
        get_config_manager().update_logging()
    except Exception as e:
        logger.warning(f"Using default logging settings: {e}")

    return CLIRouter().route_command(args)


if __name__ == '__main__':
    sys.exit(main())
