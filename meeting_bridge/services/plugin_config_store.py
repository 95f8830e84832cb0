import logging
from functools import lru_cache

from pydantic import ValidationError

from meeting_bridge.core.config import Settings
from meeting_bridge.schemas.plugin_config import PluginConfiguration

logger = logging.getLogger(__name__)


def get_plugin_configuration() -> PluginConfiguration:
    """
    Returns the cached plugin configuration, loading it on first use.

    A failed load is not cached, so the next call tries again.
    """
    try:
        return _load_plugin_configuration_cached()
    except ValidationError as exc:
        logger.error("Failed to load plugin configuration error_count=%s", exc.error_count())
        return PluginConfiguration(webhook_url="", open_in_new_tab=True)


def invalidate_plugin_configuration() -> None:
    _load_plugin_configuration_cached.cache_clear()


@lru_cache(maxsize=1)
def _load_plugin_configuration_cached() -> PluginConfiguration:
    # Settings are read fresh so a reload observes changed values.
    settings = Settings()
    return PluginConfiguration(
        webhook_url=settings.webhook_url,
        open_in_new_tab=settings.open_in_new_tab,
        service_name=settings.service_name,
    )
