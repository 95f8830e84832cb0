from datetime import UTC, datetime

from meeting_bridge.core.config import Settings
from meeting_bridge.schemas.health import HealthResponse
from meeting_bridge.schemas.plugin_config import PluginConfiguration


class HealthService:
    def __init__(self, settings: Settings, configuration: PluginConfiguration) -> None:
        self.settings = settings
        self.configuration = configuration

    def get_status(self) -> HealthResponse:
        return HealthResponse(
            status="ok",
            service=self.settings.app_name,
            webhook_configured=self.configuration.webhook_configured,
            timestamp=datetime.now(UTC),
        )
