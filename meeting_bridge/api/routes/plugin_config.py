from fastapi import APIRouter

from meeting_bridge.schemas.plugin_config import PluginConfiguration, PluginConfigurationResponse
from meeting_bridge.services.plugin_config_store import get_plugin_configuration
from meeting_bridge.services.plugin_lifecycle import on_configuration_change

router = APIRouter(tags=["configuration"])


def _to_response(configuration: PluginConfiguration) -> PluginConfigurationResponse:
    return PluginConfigurationResponse(
        webhook_url=configuration.webhook_url,
        open_in_new_tab=configuration.open_in_new_tab,
        service_name=configuration.service_name,
    )


@router.get("/config", response_model=PluginConfigurationResponse)
def get_config() -> PluginConfigurationResponse:
    return _to_response(get_plugin_configuration())


@router.post("/config/reload", response_model=PluginConfigurationResponse)
def reload_config() -> PluginConfigurationResponse:
    return _to_response(on_configuration_change())
