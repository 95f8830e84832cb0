from fastapi import APIRouter

from meeting_bridge.core.config import get_settings
from meeting_bridge.schemas.health import HealthResponse
from meeting_bridge.services.health_service import HealthService
from meeting_bridge.services.plugin_config_store import get_plugin_configuration

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def healthcheck() -> HealthResponse:
    service = HealthService(get_settings(), get_plugin_configuration())
    return service.get_status()
