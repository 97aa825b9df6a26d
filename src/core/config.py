#!/usr/bin/env python3
"""
Centralized Configuration Manager

Provides a single source of truth for all application configuration,
including environment variables, defaults, and validation.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, List

from core.env_loader import load_env_file
from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_FEED_USER_AGENT = "Mozilla/5.0 (compatible; TopicPipeline/1.0)"
DEFAULT_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_SOURCE_DENYLIST = "CP24,CTV News"


@dataclass
class StoreConfig:
    """Topic store connection configuration."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None


@dataclass
class IntegrationConfig:
    """External capability configuration."""
    openai_api_key: Optional[str] = None
    grouping_model: str = "gpt-4o-mini"
    synthesis_model: str = "gpt-4o"
    grouping_max_tokens: int = 4096
    synthesis_max_tokens: int = 1500


@dataclass
class ApplicationConfig:
    """Core application configuration."""
    # Feed fetching
    feed_timeout: int = 10
    feed_user_agent: str = DEFAULT_FEED_USER_AGENT

    # Landing page image resolution
    image_timeout: int = 5
    image_batch_size: int = 5
    image_user_agent: str = DEFAULT_BROWSER_USER_AGENT

    # Grouping and diversity gate
    description_excerpt_length: int = 150
    min_unique_sources: int = 2
    min_bias_categories: int = 2
    max_topics_per_run: int = 100

    # Source registry
    source_denylist: List[str] = field(default_factory=lambda: DEFAULT_SOURCE_DENYLIST.split(','))
    sources_file: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    verbose_logging: bool = False


@dataclass
class Config:
    """Master configuration container."""
    store: StoreConfig
    integrations: IntegrationConfig
    app: ApplicationConfig

    environment: str = field(default_factory=lambda: os.getenv('ENVIRONMENT', 'development'))

    def has_store(self) -> bool:
        """Check if store credentials are present."""
        return bool(self.store.supabase_url and self.store.supabase_key)

    def missing_live_credentials(self) -> List[str]:
        """Names of credentials a live run needs but does not have."""
        missing = []
        if not self.store.supabase_url:
            missing.append('SUPABASE_URL')
        if not self.store.supabase_key:
            missing.append('SUPABASE_SERVICE_KEY')
        if not self.integrations.openai_api_key:
            missing.append('OPENAI_API_KEY')
        return missing

    def require_live_credentials(self, needs_store: bool = True) -> None:
        """
        Fail fast when the run cannot possibly complete.

        Raises:
            ConfigurationError: If capability or store credentials are missing
        """
        missing = self.missing_live_credentials()
        if not needs_store:
            missing = [key for key in missing if not key.startswith('SUPABASE')]
        if missing:
            raise ConfigurationError(', '.join(missing), "required for a pipeline run but not set")


def _split_list(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(',') if item.strip()]


class ConfigManager:
    """Manages application configuration with validation and environment loading."""

    def __init__(self, env_file_path: str = ".env"):
        """
        Initialize configuration manager.

        Args:
            env_file_path: Path to .env file relative to project root
        """
        self._config: Optional[Config] = None
        load_env_file(env_file_path)

    def get_config(self, force_reload: bool = False) -> Config:
        """
        Get application configuration.

        Args:
            force_reload: Force reloading configuration from environment

        Returns:
            Complete configuration object
        """
        if self._config is None or force_reload:
            self._config = self._build_config()
        return self._config

    def _build_config(self) -> Config:
        """Build configuration from environment variables."""
        store_config = StoreConfig(
            supabase_url=os.getenv('SUPABASE_URL'),
            supabase_key=os.getenv('SUPABASE_SERVICE_KEY') or os.getenv('SUPABASE_ANON_KEY'),
        )

        integration_config = IntegrationConfig(
            openai_api_key=os.getenv('OPENAI_API_KEY'),
            grouping_model=os.getenv('GROUPING_MODEL', 'gpt-4o-mini'),
            synthesis_model=os.getenv('SYNTHESIS_MODEL', 'gpt-4o'),
            grouping_max_tokens=self._get_int('GROUPING_MAX_TOKENS', 4096),
            synthesis_max_tokens=self._get_int('SYNTHESIS_MAX_TOKENS', 1500),
        )

        app_config = ApplicationConfig(
            feed_timeout=self._get_int('FEED_TIMEOUT', 10),
            feed_user_agent=os.getenv('FEED_USER_AGENT', DEFAULT_FEED_USER_AGENT),
            image_timeout=self._get_int('IMAGE_TIMEOUT', 5),
            image_batch_size=self._get_int('IMAGE_BATCH_SIZE', 5),
            image_user_agent=os.getenv('IMAGE_USER_AGENT', DEFAULT_BROWSER_USER_AGENT),
            description_excerpt_length=self._get_int('DESCRIPTION_EXCERPT_LENGTH', 150),
            min_unique_sources=self._get_int('MIN_UNIQUE_SOURCES', 2),
            min_bias_categories=self._get_int('MIN_BIAS_CATEGORIES', 2),
            max_topics_per_run=self._get_int('MAX_TOPICS_PER_RUN', 100),
            source_denylist=_split_list(os.getenv('SOURCE_DENYLIST', DEFAULT_SOURCE_DENYLIST)),
            sources_file=os.getenv('SOURCES_FILE') or None,
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            verbose_logging=os.getenv('VERBOSE_LOGGING', 'false').lower() == 'true',
        )

        config = Config(
            store=store_config,
            integrations=integration_config,
            app=app_config
        )

        self._validate_config(config)
        return config

    def _get_int(self, key: str, default: int) -> int:
        raw = os.getenv(key)
        if raw is None or raw == '':
            return default
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(key, f"expected an integer, got {raw!r}")

    def _validate_config(self, config: Config) -> None:
        """Validate configuration values."""
        errors = []

        if config.store.supabase_url and not config.store.supabase_url.startswith('https://'):
            errors.append("SUPABASE_URL must start with https://")

        if not 1 <= config.app.feed_timeout <= 60:
            errors.append("FEED_TIMEOUT must be between 1 and 60 seconds")

        if not 1 <= config.app.image_timeout <= 60:
            errors.append("IMAGE_TIMEOUT must be between 1 and 60 seconds")

        if not 1 <= config.app.image_batch_size <= 20:
            errors.append("IMAGE_BATCH_SIZE must be between 1 and 20")

        if config.app.min_unique_sources < 2:
            errors.append("MIN_UNIQUE_SOURCES must be at least 2")

        if not 2 <= config.app.min_bias_categories <= 3:
            errors.append("MIN_BIAS_CATEGORIES must be 2 or 3")

        if config.app.max_topics_per_run < 1:
            errors.append("MAX_TOPICS_PER_RUN must be at least 1")

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if config.app.log_level not in valid_log_levels:
            errors.append(f"LOG_LEVEL must be one of: {', '.join(valid_log_levels)}")

        if errors:
            raise ConfigurationError('environment', '; '.join(errors))

        logger.debug("Configuration validation passed")

    def update_logging(self) -> None:
        """Configure logging based on current configuration."""
        config = self.get_config()

        numeric_level = getattr(logging, config.app.log_level)
        logging.getLogger().setLevel(numeric_level)

        if config.app.verbose_logging:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        else:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        for handler in logging.getLogger().handlers:
            handler.setLevel(numeric_level)
            handler.setFormatter(logging.Formatter(format_str, datefmt='%Y-%m-%d %H:%M:%S'))


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> Config:
    """Get application configuration."""
    return get_config_manager().get_config()

