#!/usr/bin/env python3
"""
Standardized exception hierarchy for the topic pipeline.

Transport and malformed-structure failures are recovered locally by the
stage that raises them; configuration failures abort the run.
"""

from typing import Optional, Dict, Any


class PipelineError(Exception):
    """Base exception for all topic pipeline errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context
        }


# Source-related exceptions
class SourceError(PipelineError):
    """Base exception for news source errors."""
    pass


class SourceConnectionError(SourceError):
    """Failed to fetch a feed or landing page."""

    def __init__(self, source_name: str, url: str, original_error: Exception):
        message = f"Failed to connect to {source_name} at {url}"
        context = {
            'source_name': source_name,
            'url': url,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


class SourceTimeoutError(SourceError):
    """Source request timed out."""

    def __init__(self, source_name: str, timeout_seconds: float):
        message = f"Timeout connecting to {source_name} after {timeout_seconds}s"
        context = {
            'source_name': source_name,
            'timeout_seconds': timeout_seconds
        }
        super().__init__(message, context=context)


class SourceParseError(SourceError):
    """Failed to parse content from news source."""

    def __init__(self, source_name: str, parse_stage: str, original_error: Exception):
        message = f"Failed to parse {parse_stage} from {source_name}"
        context = {
            'source_name': source_name,
            'parse_stage': parse_stage,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


# External capability exceptions
class CapabilityError(PipelineError):
    """Base exception for classification/generation collaborator errors."""
    pass


class CapabilityOutputError(CapabilityError):
    """Collaborator output did not satisfy its declared structure."""

    def __init__(self, capability: str, problem: str, raw_excerpt: str = ""):
        message = f"{capability} output rejected: {problem}"
        context = {
            'capability': capability,
            'problem': problem,
            'raw_excerpt': raw_excerpt[:300]
        }
        super().__init__(message, context=context)


class LLMError(CapabilityError):
    """LLM provider call failed."""

    def __init__(self, provider: str, model: str, original_error: Exception):
        message = f"LLM error from {provider} ({model})"
        context = {
            'provider': provider,
            'model': model,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


# Store-related exceptions
class StoreError(PipelineError):
    """Base exception for topic store errors."""
    pass


class StoreWriteError(StoreError):
    """A single insert into the topic store failed."""

    def __init__(self, table: str, original_error: Exception):
        message = f"Insert failed on table {table}"
        context = {
            'table': table,
            'original_error': str(original_error)
        }
        super().__init__(message, context=context)


# Configuration-related exceptions
class ConfigurationError(PipelineError):
    """Configuration is invalid or missing."""

    def __init__(self, config_key: str, issue: str):
        message = f"Configuration error for {config_key}: {issue}"
        context = {
            'config_key': config_key,
            'issue': issue
        }
        super().__init__(message, context=context)
