#!/usr/bin/env python3
"""
Run-scoped state and the structured run summary.

One RunContext is created per pipeline run and passed explicitly to every
stage; nothing about a run lives in module globals.
"""

import time
import uuid
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class StageTiming:
    """Timing for a single pipeline stage."""
    stage: str
    duration: float
    success: bool
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "duration": round(self.duration, 3),
            "success": self.success,
            "error_message": self.error_message
        }


@dataclass
class RunContext:
    """Accumulated log lines, errors and counters for one run."""
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    logs: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    timings: List[StageTiming] = field(default_factory=list)
    sources_processed: int = 0
    articles_collected: int = 0
    candidate_groups: int = 0
    topics_processed: int = 0
    topics_skipped: int = 0

    def log(self, message: str) -> None:
        """Record a user-visible log line."""
        logger.info(message)
        self.logs.append(message)

    def error(self, message: str) -> None:
        """Record a recovered failure; it also goes into the run log."""
        logger.warning(message)
        self.logs.append(message)
        self.errors.append(message)

    @contextmanager
    def time_stage(self, stage: str):
        """Context manager for timing pipeline stages."""
        start_time = time.time()
        success = True
        error_message = None

        try:
            yield
        except Exception as e:
            success = False
            error_message = str(e)
            raise
        finally:
            duration = time.time() - start_time
            self.timings.append(StageTiming(stage, duration, success, error_message))
            logger.debug(f"Stage '{stage}' took {duration:.2f}s (success: {success})")


@dataclass
class RunSummary:
    """What a run reports back to its caller."""
    success: bool
    run_id: str
    logs: List[str]
    errors: List[str]
    sources_processed: int = 0
    articles_collected: int = 0
    candidate_groups: int = 0
    topics_processed: int = 0
    topics_skipped: int = 0
    stage_timings: List[StageTiming] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def completed(cls, ctx: RunContext) -> 'RunSummary':
        return cls(
            success=True,
            run_id=ctx.run_id,
            logs=list(ctx.logs),
            errors=list(ctx.errors),
            sources_processed=ctx.sources_processed,
            articles_collected=ctx.articles_collected,
            candidate_groups=ctx.candidate_groups,
            topics_processed=ctx.topics_processed,
            topics_skipped=ctx.topics_skipped,
            stage_timings=list(ctx.timings),
        )

    @classmethod
    def failed(cls, ctx: RunContext, error: Exception) -> 'RunSummary':
        message = getattr(error, 'message', None) or str(error) or error.__class__.__name__
        return cls(
            success=False,
            run_id=ctx.run_id,
            logs=list(ctx.logs),
            errors=list(ctx.errors),
            stage_timings=list(ctx.timings),
            error=message,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        if not self.success:
            return {
                "success": False,
                "run_id": self.run_id,
                "error": self.error,
                "logs": self.logs,
                "errors": self.errors,
            }
        return {
            "success": True,
            "run_id": self.run_id,
            "sources_processed": self.sources_processed,
            "articles_collected": self.articles_collected,
            "candidate_groups": self.candidate_groups,
            "topics_processed": self.topics_processed,
            "topics_skipped": self.topics_skipped,
            "logs": self.logs,
            "errors": self.errors,
            "stage_timings": [timing.to_dict() for timing in self.stage_timings],
        }
