import logging
from collections.abc import Callable

from fastapi import APIRouter, Request, status
from fastapi.concurrency import run_in_threadpool

from meeting_bridge.core.config import get_settings
from meeting_bridge.core.errors import GENERAL_FIELD, MeetingRequestError
from meeting_bridge.schemas.meeting import ErrorResponse, MeetingSuccessResponse
from meeting_bridge.services.host_api import create_host_api
from meeting_bridge.services.instant_call_service import InstantCallService
from meeting_bridge.services.plugin_config_store import get_plugin_configuration
from meeting_bridge.services.schedule_meeting_service import ScheduleMeetingService

router = APIRouter(tags=["meetings"])
logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
}
_NOT_ALLOWED_METHODS = ["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.post(
    "/schedule-meeting",
    response_model=MeetingSuccessResponse,
    responses=_ERROR_RESPONSES,
)
async def schedule_meeting(request: Request) -> MeetingSuccessResponse:
    raw_body = await request.body()

    def _schedule() -> MeetingSuccessResponse:
        settings = get_settings()
        service = ScheduleMeetingService(
            settings=settings,
            configuration=get_plugin_configuration(),
            host_api=create_host_api(settings),
        )
        return service.schedule(raw_body)

    return await _run_meeting_operation("schedule-meeting", request, _schedule)


@router.api_route("/schedule-meeting", methods=_NOT_ALLOWED_METHODS, include_in_schema=False)
def schedule_meeting_method_not_allowed(request: Request) -> None:
    _reject_method("schedule-meeting", request)


@router.post(
    "/instant-call",
    response_model=MeetingSuccessResponse,
    responses=_ERROR_RESPONSES,
)
async def start_instant_call(request: Request) -> MeetingSuccessResponse:
    raw_body = await request.body()

    def _start() -> MeetingSuccessResponse:
        settings = get_settings()
        service = InstantCallService(
            settings=settings,
            configuration=get_plugin_configuration(),
            host_api=create_host_api(settings),
        )
        return service.start(raw_body)

    return await _run_meeting_operation("instant-call", request, _start)


@router.api_route("/instant-call", methods=_NOT_ALLOWED_METHODS, include_in_schema=False)
def instant_call_method_not_allowed(request: Request) -> None:
    _reject_method("instant-call", request)


async def _run_meeting_operation(
    operation: str,
    request: Request,
    handler: Callable[[], MeetingSuccessResponse],
) -> MeetingSuccessResponse:
    logger.info("%s called path=%s", operation, str(request.url.path))
    try:
        response = await run_in_threadpool(handler)
    except MeetingRequestError as exc:
        logger.warning(
            "%s rejected path=%s status_code=%s fields=%s",
            operation,
            str(request.url.path),
            exc.status_code,
            ",".join(error.field for error in exc.errors),
        )
        raise
    except Exception as exc:
        logger.exception("%s failed path=%s", operation, str(request.url.path))
        raise MeetingRequestError.internal() from exc

    logger.info("%s succeeded path=%s", operation, str(request.url.path))
    return response


def _reject_method(operation: str, request: Request) -> None:
    logger.warning("%s method not allowed method=%s", operation, request.method)
    raise MeetingRequestError.single(
        status.HTTP_405_METHOD_NOT_ALLOWED,
        GENERAL_FIELD,
        "Method not allowed. Use POST.",
    )
