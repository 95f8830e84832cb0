from fastapi import APIRouter

from meeting_bridge.api.routes.health import router as health_router
from meeting_bridge.api.routes.meetings import router as meetings_router
from meeting_bridge.api.routes.plugin_config import router as plugin_config_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(meetings_router)

# Served outside the API prefix, where the chat client expects it.
root_router = APIRouter()
root_router.include_router(plugin_config_router)
