#!/usr/bin/env python3
"""
Supabase REST API topic store.

Writes topics to ``news_topics`` and their member articles to
``news_articles`` over HTTPS.
"""

import logging
from typing import Dict, Any

from supabase import create_client, Client

from core.config import StoreConfig
from core.exceptions import ConfigurationError, StoreWriteError
from core.models.article import Article
from core.models.topic import Topic
from core.publisher import TopicStore

logger = logging.getLogger(__name__)


def create_supabase_client(store_config: StoreConfig) -> Client:
    """
    Create and configure Supabase client.

    Raises:
        ConfigurationError: If URL or key is missing
    """
    if not store_config.supabase_url:
        raise ConfigurationError('SUPABASE_URL', "not set")
    if not store_config.supabase_key:
        raise ConfigurationError('SUPABASE_SERVICE_KEY', "neither SUPABASE_SERVICE_KEY nor SUPABASE_ANON_KEY found")

    return create_client(store_config.supabase_url, store_config.supabase_key)


class SupabaseTopicStore(TopicStore):
    """Topic store using the Supabase REST API."""

    TOPICS_TABLE = 'news_topics'
    ARTICLES_TABLE = 'news_articles'

    def __init__(self, client: Client):
        self.client = client
        logger.info("Supabase topic store initialized")

    @staticmethod
    def topic_row(topic: Topic) -> Dict[str, Any]:
        return {
            'topic': topic.topic_key,
            'headline': topic.headline,
            'ai_summary': topic.narrative,
            'thumbnail_url': topic.thumbnail_url,
            'published_date': topic.published_at.isoformat(),
            'source_count_left': topic.bias_counts.left,
            'source_count_centre': topic.bias_counts.center,
            'source_count_right': topic.bias_counts.right,
            'left_emphasis': [topic.left_emphasis],
            'right_emphasis': [topic.right_emphasis],
            'common_ground': [topic.common_ground],
            'key_points': topic.key_points,
            'tags': topic.tags,
            'is_featured': topic.is_featured,
        }

    @staticmethod
    def article_row(article: Article, topic_key: str) -> Dict[str, Any]:
        return {
            'topic': topic_key,
            'title': article.title,
            'url': article.link,
            'source': article.source.name,
            'source_bias': article.source.bias.value,
            'published_date': article.published_at.isoformat(),
            'thumbnail_url': article.image_url,
            'summary': article.description,
        }

    def insert_topic(self, topic: Topic) -> str:
        try:
            result = (self.client.table(self.TOPICS_TABLE)
                      .insert(self.topic_row(topic))
                      .execute())
        except Exception as e:
            logger.error(f"Failed to insert topic {topic.topic_key}: {e}")
            raise StoreWriteError(self.TOPICS_TABLE, e)

        if result.data:
            return str(result.data[0].get('id', topic.topic_key))
        return topic.topic_key

    def insert_article(self, article: Article, topic_key: str) -> None:
        try:
            (self.client.table(self.ARTICLES_TABLE)
             .insert(self.article_row(article, topic_key))
             .execute())
        except Exception as e:
            logger.error(f"Failed to insert article {article.link}: {e}")
            raise StoreWriteError(self.ARTICLES_TABLE, e)
