#!/usr/bin/env python3
"""
Topic synthesis.

Invokes the writer for one validated group and enforces its output
contract before anything can be published.
"""

import re
import logging
from typing import Any, Dict, List, Optional

from core.capabilities import TopicWriter
from core.exceptions import CapabilityError, CapabilityOutputError
from core.json_validator import extract_json_object, JSONValidationError
from core.models.run import RunContext
from core.models.topic import Synthesis, ValidatedGroup, NARRATIVE_SECTIONS

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = re.compile(r'\n\s*\n')

TEXT_FIELDS = ('ai_summary', 'left_emphasis', 'right_emphasis', 'common_ground')
LIST_FIELDS = ('key_points', 'tags')


def split_sections(narrative: str) -> List[str]:
    """Split a narrative on blank lines into non-empty paragraphs."""
    return [part.strip() for part in PARAGRAPH_BREAK.split(narrative.strip()) if part.strip()]


def _require_text(data: Dict[str, Any], field_name: str, raw_output: str) -> str:
    value = data.get(field_name)
    if not isinstance(value, str) or not value.strip():
        raise CapabilityOutputError('writer', f"missing or empty text field '{field_name}'", raw_output)
    return value.strip()


def _require_list(data: Dict[str, Any], field_name: str, raw_output: str) -> List[str]:
    value = data.get(field_name)
    if not isinstance(value, list) or not all(isinstance(entry, str) for entry in value):
        raise CapabilityOutputError('writer', f"field '{field_name}' must be a list of strings", raw_output)
    return [entry.strip() for entry in value if entry.strip()]


def parse_synthesis(raw_output: str) -> Synthesis:
    """
    Enforce the writer contract on raw output.

    Raises:
        CapabilityOutputError: If the output is not a JSON object with
            every required field of the right type
    """
    try:
        data = extract_json_object(raw_output)
    except JSONValidationError as e:
        raise CapabilityOutputError('writer', str(e), raw_output or "")

    text = {name: _require_text(data, name, raw_output) for name in TEXT_FIELDS}
    lists = {name: _require_list(data, name, raw_output) for name in LIST_FIELDS}

    sections = split_sections(text['ai_summary'])
    return Synthesis(
        narrative="\n\n".join(sections),
        sections=sections,
        key_points=lists['key_points'],
        tags=lists['tags'],
        left_emphasis=text['left_emphasis'],
        right_emphasis=text['right_emphasis'],
        common_ground=text['common_ground'],
    )


class TopicSynthesizer:
    """Produces a Synthesis per validated group, or records why it could not."""

    def __init__(self, writer: TopicWriter):
        self.writer = writer

    def synthesize(self, ctx: RunContext, group: ValidatedGroup) -> Optional[Synthesis]:
        try:
            raw_output = self.writer.synthesize(group.articles)
        except CapabilityError as e:
            ctx.error(f"Error processing {group.label}: {e.message}")
            return None

        try:
            synthesis = parse_synthesis(raw_output)
        except CapabilityOutputError as e:
            logger.debug(f"Rejected synthesis output: {e.context.get('raw_excerpt')!r}")
            ctx.error(f"Failed to parse analysis for {group.label}: {e.context['problem']}")
            return None

        if len(synthesis.sections) != len(NARRATIVE_SECTIONS):
            logger.warning(f"Narrative for '{group.label}' has {len(synthesis.sections)} "
                           f"paragraphs, expected {len(NARRATIVE_SECTIONS)}")
        return synthesis
