import logging

from meeting_bridge.core.config import get_settings
from meeting_bridge.schemas.plugin_config import PluginConfiguration
from meeting_bridge.services.plugin_config_store import (
    get_plugin_configuration,
    invalidate_plugin_configuration,
)

logger = logging.getLogger(__name__)


def on_activate() -> None:
    logger.info("Meeting plugin activated")
    configuration = get_plugin_configuration()
    if not configuration.webhook_configured:
        logger.warning("Webhook URL is not configured")
        return
    logger.info("Plugin configured webhook_url=%s", configuration.webhook_url)


def on_deactivate() -> None:
    logger.info("Meeting plugin deactivated")


def on_configuration_change() -> PluginConfiguration:
    """
    Drops every cached view of the configuration and loads it again.

    CORS origins and the API prefix are bound when the application is built
    and keep their startup values.
    """
    get_settings.cache_clear()
    invalidate_plugin_configuration()
    logger.info("Configuration cache cleared")
    configuration = get_plugin_configuration()
    logger.info(
        "Configuration reloaded webhook_configured=%s",
        configuration.webhook_configured,
    )
    return configuration
