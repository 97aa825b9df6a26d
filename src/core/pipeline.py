#!/usr/bin/env python3
"""
Topic pipeline orchestration.

Runs one batch: sources, fetch, parse, image resolution, aggregation,
grouping, diversity gate, synthesis and publishing. All run-scoped state
lives in the RunContext handed to each stage.
"""

import asyncio
import logging
from typing import List, Optional

from core.capabilities import TopicClassifier, TopicWriter
from core.config import ApplicationConfig
from core.container import Container, get_container
from core.content.image_resolver import ImageResolver
from core.diversity import DiversityGate
from core.exceptions import ConfigurationError, PipelineError, SourceParseError
from core.feed_fetcher import AsyncFeedFetcher
from core.grouping import TopicGrouper, aggregate
from core.models.article import Article
from core.models.run import RunContext, RunSummary
from core.models.source import Source
from core.models.topic import CandidateGroup, Topic
from core.publisher import InMemoryTopicStore, Publisher, TopicStore
from core.sources.base import SourceRegistry
from core.sources.registry import build_source_registry
from core.sources.rss.parser import RSSParser
from core.synthesis import TopicSynthesizer

logger = logging.getLogger(__name__)


class TopicPipeline:
    """One cross-source topic run over injected collaborators."""

    def __init__(self,
                 registry: SourceRegistry,
                 fetcher: AsyncFeedFetcher,
                 parser: RSSParser,
                 image_resolver: ImageResolver,
                 classifier: TopicClassifier,
                 writer: TopicWriter,
                 store: TopicStore,
                 settings: Optional[ApplicationConfig] = None):
        settings = settings or ApplicationConfig()
        self.registry = registry
        self.fetcher = fetcher
        self.parser = parser
        self.image_resolver = image_resolver
        self.store = store
        self.max_topics = settings.max_topics_per_run

        self.grouper = TopicGrouper(classifier, settings.description_excerpt_length)
        self.gate = DiversityGate(settings.min_unique_sources, settings.min_bias_categories)
        self.synthesizer = TopicSynthesizer(writer)
        self.publisher = Publisher(store)

    def run(self, ctx: Optional[RunContext] = None) -> RunSummary:
        """
        Execute the pipeline to completion.

        Per-unit failures are recorded in the context and skipped; only a
        failure outside any unit of work (e.g. the registry cannot be read)
        produces a failed summary.
        """
        ctx = ctx or RunContext()
        logger.info(f"Starting topic run {ctx.run_id}")

        try:
            with ctx.time_stage('sources'):
                ctx.log('Fetching active news sources...')
                sources = self.registry.list_active_sources()
                ctx.log(f"Found {len(sources)} active sources (after filtering)")

            with ctx.time_stage('ingest'):
                per_source = asyncio.run(self._ingest(ctx, sources))

            corpus = aggregate(per_source)
            ctx.articles_collected = len(corpus)
            ctx.log(f"Total articles collected: {len(corpus)}")

            with ctx.time_stage('grouping'):
                groups = self.grouper.group(ctx, corpus)
            ctx.candidate_groups = len(groups)

            with ctx.time_stage('topics'):
                self._process_groups(ctx, groups, corpus)

        except PipelineError as e:
            ctx.error(e.message)
            return RunSummary.failed(ctx, e)
        except Exception as e:
            logger.exception(f"Topic run {ctx.run_id} failed")
            ctx.error(f"Unexpected error: {e}")
            return RunSummary.failed(ctx, e)

        ctx.log(f"Run complete: {ctx.topics_processed} topics published, {ctx.topics_skipped} skipped")
        return RunSummary.completed(ctx)

    async def _ingest(self, ctx: RunContext, sources: List[Source]) -> List[List[Article]]:
        """Fetch all feeds concurrently, parse them, then fill in missing images."""
        async with self.fetcher:
            documents = await self.fetcher.fetch_all(sources, ctx)

        per_source = []
        async with self.image_resolver:
            for source, document in documents:
                articles = self._parse(ctx, source, document)
                if articles is None:
                    continue
                per_source.append(await self.image_resolver.resolve_missing(articles))
        return per_source

    def _parse(self, ctx: RunContext, source: Source,
               document: Optional[str]) -> Optional[List[Article]]:
        if document is None:
            return None

        try:
            articles = self.parser.parse_items(document, source)
        except Exception as e:
            ctx.error(SourceParseError(source.name, 'feed items', e).message)
            return None

        ctx.sources_processed += 1
        ctx.log(f"Parsed {len(articles)} articles from {source.name}")
        return articles

    def _process_groups(self, ctx: RunContext, groups: List[CandidateGroup], corpus: List[Article]) -> None:
        """Gate, synthesize and publish candidate groups, one at a time."""
        if len(groups) > self.max_topics:
            ctx.log(f"Limiting run to the first {self.max_topics} of {len(groups)} candidate topics")

        for group in groups[:self.max_topics]:
            ctx.log(f"Processing topic: {group.label}")
            try:
                published = self._process_group(ctx, group, corpus)
            except Exception as e:
                logger.exception(f"Unexpected failure processing '{group.label}'")
                ctx.error(f"Error processing {group.label}: {e}")
                published = False

            if not published:
                ctx.topics_skipped += 1

    def _process_group(self, ctx: RunContext, group: CandidateGroup, corpus: List[Article]) -> bool:
        validated = self.gate.evaluate(ctx, group, corpus)
        if validated is None:
            return False

        synthesis = self.synthesizer.synthesize(ctx, validated)
        if synthesis is None:
            return False

        return self.publisher.publish(ctx, Topic.from_group(validated, synthesis))


def build_pipeline(container: Container, dry_run: bool = False,
                   sources_file: Optional[str] = None,
                   store: Optional[TopicStore] = None) -> TopicPipeline:
    """
    Assemble a pipeline from the container's services.

    Raises:
        ConfigurationError: If a required collaborator cannot be configured
    """
    config = container.get('config')

    if store is None:
        store = InMemoryTopicStore() if dry_run else container.get('topic_store')

    client = container.get('supabase_client') if not (sources_file or config.app.sources_file) else None
    registry = build_source_registry(config, sources_file, client)

    openai_client = container.get('openai_client')
    return TopicPipeline(
        registry=registry,
        fetcher=container.get('feed_fetcher'),
        parser=container.get('rss_parser'),
        image_resolver=container.get('image_resolver'),
        classifier=openai_client,
        writer=openai_client,
        store=store,
        settings=config.app,
    )


def run_pipeline(dry_run: bool = False,
                 sources_file: Optional[str] = None,
                 store: Optional[TopicStore] = None,
                 container: Optional[Container] = None) -> RunSummary:
    """
    Configure and execute one run.

    Configuration failures (missing credentials, invalid settings) abort
    before anything is fetched and come back as a failed summary.

    Args:
        dry_run: Publish to an in-memory store instead of Supabase
        sources_file: Optional JSON source list overriding the store's registry
        store: Optional store to publish into (implies no Supabase writes)
        container: Optional container; the global one is used by default
    """
    ctx = RunContext()
    container = container or get_container()

    try:
        config = container.get('config')
        needs_store = not ((dry_run or store is not None) and (sources_file or config.app.sources_file))
        config.require_live_credentials(needs_store=needs_store)
        pipeline = build_pipeline(container, dry_run, sources_file, store)
    except ConfigurationError as e:
        ctx.error(e.message)
        return RunSummary.failed(ctx, e)

    return pipeline.run(ctx)
