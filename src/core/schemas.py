#!/usr/bin/env python3
"""
Centralized JSON schemas for OpenAI structured outputs.

The synthesis schema doubles as the contract enforced on writer output
regardless of which provider produced it.
"""

from typing import Dict, Any

# Schema for one topic synthesis
TOPIC_SYNTHESIS_SCHEMA = {
    "type": "object",
    "properties": {
        "ai_summary": {
            "type": "string",
            "description": "Six neutral paragraphs separated by blank lines"
        },
        "key_points": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Ordered key points of the event"
        },
        "tags": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Short topical tags"
        },
        "left_emphasis": {
            "type": "string",
            "description": "What left-leaning sources emphasize (1 sentence)"
        },
        "right_emphasis": {
            "type": "string",
            "description": "What right-leaning sources emphasize (1 sentence)"
        },
        "common_ground": {
            "type": "string",
            "description": "What all sources agree on (1 sentence)"
        }
    },
    "required": ["ai_summary", "key_points", "tags", "left_emphasis", "right_emphasis", "common_ground"],
    "additionalProperties": False
}


def get_schema_by_type(schema_type: str) -> Dict[str, Any]:
    """
    Get JSON schema by type.

    Args:
        schema_type: Currently only "synthesis"

    Returns:
        JSON schema dictionary

    Raises:
        ValueError: If schema_type is not recognized
    """
    schemas = {
        "synthesis": TOPIC_SYNTHESIS_SCHEMA,
    }

    if schema_type not in schemas:
        raise ValueError(f"Unknown schema type: {schema_type}")

    return schemas[schema_type]
