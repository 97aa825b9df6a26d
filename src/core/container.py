#!/usr/bin/env python3
"""
Dependency Injection Container

Builds the pipeline's collaborators from configuration in one place.
Tests register fakes or a ready-made Config with ``register_instance``.
"""

import logging
import threading
from typing import Any, Dict, Callable, TypeVar, Optional

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Container:
    """Named services, created lazily either once (singleton) or per request."""

    def __init__(self):
        """Initialize empty container."""
        self._factories: Dict[str, Callable] = {}
        self._singletons: Dict[str, Any] = {}
        self._singleton_names = set()
        # Factories resolve their own dependencies through get()
        self._lock = threading.RLock()

    def register_singleton(self, service_name: str, factory: Callable[[], T]) -> None:
        """
        Register a service created once and reused.

        Args:
            service_name: Unique name for the service
            factory: Zero-argument callable building the instance
        """
        with self._lock:
            self._singleton_names.add(service_name)
            self._factories[service_name] = factory
            self._singletons.pop(service_name, None)

    def register_factory(self, service_name: str, factory: Callable[[], T]) -> None:
        """Register a service built anew on every get()."""
        with self._lock:
            self._singleton_names.discard(service_name)
            self._factories[service_name] = factory
            self._singletons.pop(service_name, None)

    def register_instance(self, service_name: str, instance: T) -> None:
        """Register a pre-built instance; it shadows any factory of that name."""
        with self._lock:
            self._singletons[service_name] = instance

    def get(self, service_name: str) -> Any:
        """
        Get service instance by name.

        Raises:
            KeyError: If service is not registered
        """
        with self._lock:
            if service_name in self._singletons:
                return self._singletons[service_name]

            if service_name not in self._factories:
                raise KeyError(f"Service '{service_name}' not registered")

            factory = self._factories[service_name]
            instance = factory()
            if service_name in self._singleton_names:
                self._singletons[service_name] = instance
                logger.debug(f"Created singleton instance for '{service_name}'")
            else:
                logger.debug(f"Created new instance for '{service_name}'")
            return instance


def create_container(config=None) -> Container:
    """
    Build a container with the default services.

    Args:
        config: Optional Config registered in place of the environment one
    """
    container = Container()
    _setup_default_services(container)
    if config is not None:
        container.register_instance('config', config)
    return container


# Global container instance
_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get global container instance (thread-safe singleton)."""
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = create_container()
    return _container


def _setup_default_services(container: Container) -> None:
    """Set up default service registrations with configuration injection."""

    def create_config():
        from core.config import get_config
        return get_config()

    def create_supabase_client():
        from core.supabase_adapter import create_supabase_client as build_client
        return build_client(container.get('config').store)

    def create_rss_parser():
        from core.sources.rss import RSSParser
        return RSSParser()

    def create_feed_fetcher():
        from core.feed_fetcher import AsyncFeedFetcher
        config = container.get('config')
        return AsyncFeedFetcher(
            timeout=config.app.feed_timeout,
            user_agent=config.app.feed_user_agent
        )

    def create_image_resolver():
        from core.content import ImageResolver
        config = container.get('config')
        return ImageResolver(
            timeout=config.app.image_timeout,
            batch_size=config.app.image_batch_size,
            user_agent=config.app.image_user_agent
        )

    def create_openai_client():
        from integrations.openai_client import OpenAIClient
        return OpenAIClient(container.get('config').integrations)

    def create_topic_store():
        from core.supabase_adapter import SupabaseTopicStore
        return SupabaseTopicStore(container.get('supabase_client'))

    # Register services
    container.register_singleton('config', create_config)
    container.register_singleton('supabase_client', create_supabase_client)
    container.register_singleton('rss_parser', create_rss_parser)

    # Non-singletons
    container.register_factory('feed_fetcher', create_feed_fetcher)
    container.register_factory('image_resolver', create_image_resolver)
    container.register_factory('openai_client', create_openai_client)
    container.register_factory('topic_store', create_topic_store)

    logger.debug("Default services registered in container")

