import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meeting_bridge.api.router import api_router, root_router
from meeting_bridge.core.config import get_settings
from meeting_bridge.core.errors import MeetingRequestError, meeting_request_error_handler
from meeting_bridge.services.plugin_lifecycle import on_activate, on_deactivate

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def _plugin_lifespan(app: FastAPI) -> AsyncIterator[None]:
    on_activate()
    yield
    on_deactivate()


def create_application() -> FastAPI:
    _configure_logging()
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        lifespan=_plugin_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(MeetingRequestError, meeting_request_error_handler)
    app.include_router(api_router, prefix=settings.api_prefix)
    app.include_router(root_router)

    return app


app = create_application()
