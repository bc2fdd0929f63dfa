"""Configuration Manager for the Inspection App."""
import os
from typing import List
from appdirs import user_cache_dir
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_icon_cache_dir():
    return os.path.join(user_cache_dir('inspection_app', 'amsitesolutions'), 'icons')


class ConfigManager(BaseSettings):
    """Manages application configuration settings using Pydantic BaseSettings."""

    # Remote document database
    api_base_url: str = 'http://localhost:9000'
    api_token: str = ''
    api_timeout: float = 10.0
    api_max_retries: int = 3
    api_retry_delay: float = 1.0

    # Blob storage
    storage_base_url: str = 'https://firebasestorage.googleapis.com'
    storage_bucket: str = ''
    icon_max_bytes: int = 1 << 20  # 1 MiB
    report_max_bytes: int = 20 << 20
    icon_cache_dir: str = ''

    # Form settings
    comment_max_length: int = 50
    enforce_comment_limit: bool = False
    include_header_questions: bool = True

    # Language settings
    language: str = 'en'
    fallback_language: str = 'en'
    available_languages: List[str] = ['en', 'de', 'pt-BR']

    # Identity used in submission paths
    user_parent: str = ''
    user_id: str = ''

    # Background work
    executor_workers: int = 4

    # Logging
    log_level: str = 'INFO'
    log_colors: bool = True

    model_config = SettingsConfigDict(env_prefix='INSPECTION_', case_sensitive=False)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if not self.icon_cache_dir:
            self.icon_cache_dir = default_icon_cache_dir()

    def get(self, key, default=None):
        """Get a configuration value."""
        return getattr(self, key, default)

    def set(self, key, value):
        """Set a configuration value."""
        setattr(self, key, value)

    def get_all(self):
        """Get all configuration values as dictionary."""
        return self.model_dump()
