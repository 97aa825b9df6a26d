#!/usr/bin/env python3
"""
Topic publishing.

Each topic is an independent, self-contained write: a failed insert is
logged and never rolls back or blocks the rest of the run.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Tuple

from core.exceptions import StoreError
from core.models.article import Article
from core.models.run import RunContext
from core.models.topic import Topic

logger = logging.getLogger(__name__)


class TopicStore(ABC):
    """Append-only destination for topics and their member articles."""

    @abstractmethod
    def insert_topic(self, topic: Topic) -> str:
        """
        Store one topic record.

        Returns:
            Store-assigned topic id

        Raises:
            StoreError: If the write fails
        """
        pass

    @abstractmethod
    def insert_article(self, article: Article, topic_key: str) -> None:
        """
        Store one member article, linked to its topic by ``topic_key``.

        Raises:
            StoreError: If the write fails
        """
        pass


class InMemoryTopicStore(TopicStore):
    """Store kept in process memory; used for dry runs and tests."""

    def __init__(self):
        self.topics: List[Topic] = []
        self.articles: List[Tuple[str, Article]] = []

    def insert_topic(self, topic: Topic) -> str:
        self.topics.append(topic)
        return f"mem-{len(self.topics)}"

    def insert_article(self, article: Article, topic_key: str) -> None:
        self.articles.append((topic_key, article))

    def articles_for(self, topic_key: str) -> List[Article]:
        return [article for key, article in self.articles if key == topic_key]

    def to_dict(self) -> Dict[str, list]:
        return {
            'topics': [topic.to_dict() for topic in self.topics],
            'articles': [{'topic': key, **article.to_dict()} for key, article in self.articles],
        }


class Publisher:
    """Writes topics and their articles; the first topic of a run is featured."""

    def __init__(self, store: TopicStore):
        self.store = store

    def publish(self, ctx: RunContext, topic: Topic) -> bool:
        """
        Publish one topic and its member articles.

        Returns:
            True if the topic record was written
        """
        topic = replace(topic, is_featured=ctx.topics_processed == 0)

        try:
            topic_id = self.store.insert_topic(topic)
        except StoreError as e:
            ctx.error(f"Error inserting topic {topic.headline}: {e.message}")
            return False

        stored = 0
        for article in topic.articles:
            try:
                self.store.insert_article(article, topic.topic_key)
                stored += 1
            except StoreError as e:
                ctx.error(f"Error inserting article {article.link}: {e.message}")

        ctx.topics_processed += 1
        logger.debug(f"Stored topic {topic.topic_key} as {topic_id}")
        ctx.log(f"Successfully processed: {topic.headline} ({stored} sources)")
        return True
