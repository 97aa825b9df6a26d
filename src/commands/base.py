#!/usr/bin/env python3
"""
Shared behaviour of the CLI command classes.

A command resolves its services through the container it is given (the
global one by default) and maps failures onto process exit codes.
"""

import logging
from abc import ABC, abstractmethod
from argparse import Namespace
from typing import List

from core.container import get_container
from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# sysexits.h EX_CONFIG
EXIT_CONFIG = 78
EXIT_INTERRUPTED = 130

BASE_API = frozenset({'execute', 'get_available_subcommands', 'handle_error', 'config', 'container', 'logger'})


class BaseCommand(ABC):
    """A top-level CLI command whose public methods are its subcommands."""

    def __init__(self, container=None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._container = container or get_container()

    @property
    def container(self):
        return self._container

    @property
    def config(self):
        return self._container.get('config')

    @abstractmethod
    def execute(self, subcommand: str, args: Namespace) -> int:
        """
        Run one subcommand.

        Returns:
            Exit code (0 on success)
        """
        pass

    def get_available_subcommands(self) -> List[str]:
        return sorted(
            name for name in dir(type(self))
            if not name.startswith('_') and name not in BASE_API and callable(getattr(type(self), name))
        )

    def handle_error(self, error: Exception, context: str = "") -> int:
        """Log a command failure and pick its exit code."""
        message = f"{context}: {error}" if context else str(error)

        if isinstance(error, KeyboardInterrupt):
            self.logger.info("Interrupted")
            return EXIT_INTERRUPTED
        if isinstance(error, ConfigurationError):
            # Expected operator error, no traceback
            self.logger.error(message)
            return EXIT_CONFIG

        self.logger.error(message, exc_info=True)
        if isinstance(error, FileNotFoundError):
            return 2
        if isinstance(error, ValueError):
            return 22
        return 1
