#!/usr/bin/env python3
"""
.env support.

Reads KEY=VALUE pairs from a file under the project root into
``os.environ``. Variables already set in the process are never replaced.
"""

import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def _parse_line(line: str):
    """Return (key, value) for an assignment line, None for blanks and comments."""
    line = line.strip()
    if not line or line.startswith('#'):
        return None
    if line.startswith('export '):
        line = line[len('export '):]

    key, sep, value = line.partition('=')
    if not sep or not key.strip():
        raise ValueError(line)

    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        value = value[1:-1]
    return key.strip(), value


def load_env_file(env_file_path: str = ".env") -> int:
    """
    Populate the environment from a .env file, if present.

    Args:
        env_file_path: File name relative to the project root

    Returns:
        How many variables were newly set
    """
    env_path = PROJECT_ROOT / env_file_path
    if not env_path.is_file():
        logger.debug(f"No .env file at {env_path}")
        return 0

    try:
        text = env_path.read_text(encoding='utf-8')
    except OSError as e:
        logger.error(f"Could not read {env_path}: {e}")
        return 0

    loaded = 0
    for number, raw in enumerate(text.splitlines(), 1):
        try:
            pair = _parse_line(raw)
        except ValueError:
            logger.warning(f"{env_path.name}:{number}: not a KEY=VALUE line, ignored")
            continue
        if pair is None:
            continue

        key, value = pair
        if key in os.environ:
            continue
        os.environ[key] = value
        loaded += 1

    logger.debug(f"Set {loaded} variables from {env_path}")
    return loaded


load_env_file()
