#!/usr/bin/env python3
"""
Tolerant JSON extraction for collaborator output.

Collaborator responses are untrusted text: the payload is located first
(outermost brackets, Markdown fences removed) and only then handed to a
strict ``json.loads``.
"""

import json
import re
import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r'```(?:json)?', re.IGNORECASE)


class JSONValidationError(Exception):
    """No structured payload could be recovered from the text."""
    pass


def strip_code_fences(raw_output: str) -> str:
    """Remove Markdown code fence markers."""
    return FENCE_PATTERN.sub('', raw_output or '').strip()


def _slice_outermost(raw_output: str, opener: str, closer: str) -> str:
    start_idx = raw_output.find(opener)
    end_idx = raw_output.rfind(closer)
    if start_idx == -1 or end_idx == -1 or end_idx < start_idx:
        raise JSONValidationError(f"No {opener}...{closer} block found in output")
    return raw_output[start_idx:end_idx + 1]


def extract_json_array(raw_output: str) -> List[Any]:
    """
    Parse the outermost ``[...]`` block of a response.

    Raises:
        JSONValidationError: If no array can be recovered
    """
    if not raw_output or not raw_output.strip():
        raise JSONValidationError("Empty output")

    json_str = _slice_outermost(strip_code_fences(raw_output), '[', ']')
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.error(f"JSON array parsing failed: {e}")
        logger.debug(f"First 300 chars: {json_str[:300]!r}")
        raise JSONValidationError(f"Invalid JSON array: {e}") from e

    if not isinstance(data, list):
        raise JSONValidationError(f"Expected a JSON array, got {type(data).__name__}")
    return data


def extract_json_object(raw_output: str) -> Dict[str, Any]:
    """
    Parse a response expected to hold exactly one JSON object.

    The whole (fence-stripped) text is tried first; if that fails the
    outermost ``{...}`` block is parsed instead.

    Raises:
        JSONValidationError: If no object can be recovered
    """
    if not raw_output or not raw_output.strip():
        raise JSONValidationError("Empty output")

    cleaned = strip_code_fences(raw_output)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        json_str = _slice_outermost(cleaned, '{', '}')
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.error(f"JSON object parsing failed: {e}")
            logger.debug(f"First 300 chars: {json_str[:300]!r}")
            raise JSONValidationError(f"Invalid JSON object: {e}") from e

    if not isinstance(data, dict):
        raise JSONValidationError(f"Expected a JSON object, got {type(data).__name__}")
    return data
