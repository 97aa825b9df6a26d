#!/usr/bin/env python3
"""
OpenAI integration for topic grouping and synthesis.

Implements both collaborator interfaces:
- Grouping: a plain chat completion answering with a raw JSON array
- Synthesis: a structured output request bound to the synthesis schema
"""

import logging
from typing import List, Dict, Optional, Any

from openai import OpenAI

from core.capabilities import TopicClassifier, TopicWriter
from core.config import IntegrationConfig
from core.exceptions import ConfigurationError, LLMError
from core.models.article import Article
from core.prompts import TopicPrompts
from core.schemas import get_schema_by_type

logger = logging.getLogger(__name__)


class OpenAIClient(TopicClassifier, TopicWriter):
    """Client for OpenAI API integration with structured outputs."""

    def __init__(self, config: IntegrationConfig, client: Optional[OpenAI] = None):
        """
        Initialize OpenAI client.

        Args:
            config: Integration configuration (API key, models, token limits)
            client: Optional pre-built OpenAI client

        Raises:
            ConfigurationError: If no API key is configured
        """
        if client is None and not config.openai_api_key:
            raise ConfigurationError('OPENAI_API_KEY', "not set")

        self.client = client or OpenAI(api_key=config.openai_api_key)
        self.grouping_model = config.grouping_model
        self.synthesis_model = config.synthesis_model
        self.grouping_max_tokens = config.grouping_max_tokens
        self.synthesis_max_tokens = config.synthesis_max_tokens
        self.temperature = 0.3  # Lower temperature for more consistent output

    def _log_messages(self, messages: List[Dict[str, str]], request_type: str) -> None:
        logger.debug(f"=== LLM INPUT PROMPT ({request_type}, messages: {len(messages)}) ===")
        for i, msg in enumerate(messages):
            content = msg.get('content', '')
            # Truncate very long content for readability
            if len(content) > 1000:
                content = content[:500] + "\n...\n" + content[-500:]
            logger.debug(f"Message {i+1} [{msg.get('role', 'unknown').upper()}]:\n{content}")

    def _complete(self, messages: List[Dict[str, str]], model: str, max_tokens: int,
                  request_type: str, response_format: Optional[Dict[str, Any]] = None) -> str:
        """
        Run one chat completion and return the message text.

        Raises:
            LLMError: If the request fails or the response was truncated
        """
        logger.info(f"Making OpenAI API call for {request_type} ({model})")
        self._log_messages(messages, request_type)

        kwargs: Dict[str, Any] = {
            'model': model,
            'messages': messages,
            'max_tokens': max_tokens,
            'temperature': self.temperature,
        }
        if response_format:
            kwargs['response_format'] = response_format

        try:
            response = self.client.chat.completions.create(**kwargs)
        except Exception as e:
            logger.error(f"OpenAI request for {request_type} failed: {e}")
            raise LLMError('openai', model, e)

        if not getattr(response, 'choices', None):
            logger.error(f"OpenAI response for {request_type} had no choices")
            raise LLMError('openai', model, ValueError("response contained no choices"))

        # Detect truncated responses early
        finish_reason = getattr(response.choices[0], "finish_reason", None)
        if finish_reason == "length":
            logger.error(
                "OpenAI response for %s was truncated due to max_tokens=%s. Consider increasing the limit.",
                request_type,
                max_tokens,
            )
            raise LLMError('openai', model, ValueError("response truncated (finish_reason=length)"))

        content = response.choices[0].message.content or ""
        usage = getattr(response, 'usage', None)
        if usage is not None:
            logger.info(f"OpenAI API call successful - tokens: {usage.prompt_tokens} prompt + "
                        f"{usage.completion_tokens} completion = {usage.total_tokens} total")
        logger.debug(f"=== LLM OUTPUT RESPONSE ===\n{content}")
        return content

    def cluster(self, listing: str) -> str:
        """Group the enumerated listing; returns the raw array text."""
        messages = [
            {"role": "system", "content": TopicPrompts.GROUPING_SYSTEM_PROMPT},
            {"role": "user", "content": TopicPrompts.get_grouping_prompt(listing)},
        ]
        return self._complete(messages, self.grouping_model, self.grouping_max_tokens, "topic_grouping")

    def synthesize(self, articles: List[Article]) -> str:
        """Write the six-paragraph synthesis; returns the raw JSON object text."""
        messages = [
            {"role": "system", "content": TopicPrompts.SYNTHESIS_SYSTEM_PROMPT},
            {"role": "user", "content": TopicPrompts.get_synthesis_prompt(articles)},
        ]
        response_format = {
            "type": "json_schema",
            "json_schema": {
                "name": "topic_synthesis_response",
                "schema": get_schema_by_type("synthesis"),
                "strict": True
            }
        }
        return self._complete(messages, self.synthesis_model, self.synthesis_max_tokens,
                              "topic_synthesis", response_format)
