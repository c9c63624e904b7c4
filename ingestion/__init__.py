"""Feed collection package bootstrap."""

from .celery_app import create_celery_app, get_celery_app  # noqa: F401
from .settings import FeedSourceConfig, Settings, get_settings, reset_settings_cache  # noqa: F401

__all__ = [
    "FeedSourceConfig",
    "Settings",
    "create_celery_app",
    "get_celery_app",
    "get_settings",
    "reset_settings_cache",
]
