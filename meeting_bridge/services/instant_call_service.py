import logging
from collections.abc import Callable
from datetime import UTC, datetime

from meeting_bridge.core.config import Settings
from meeting_bridge.schemas.host import HostChannel, HostPost, HostUser
from meeting_bridge.schemas.meeting import InstantCallRequest, MeetingSuccessResponse
from meeting_bridge.schemas.plugin_config import PluginConfiguration
from meeting_bridge.schemas.webhook import InstantCallPayload
from meeting_bridge.services.datetime_normalizer import utc_now
from meeting_bridge.services.host_api import HostApi
from meeting_bridge.services.identity_resolver import IdentityResolver
from meeting_bridge.services.meeting_formatter import (
    INSTANT_CALL_SUCCESS_MESSAGE,
    build_instant_call_post_message,
    build_success_response,
    format_rfc3339,
    resolve_timezone,
)
from meeting_bridge.services.meeting_pipeline import (
    dispatch_to_webhook,
    publish_post,
    require_webhook_url,
    resolve_organizer_and_channel,
)
from meeting_bridge.services.request_validator import validate_instant_call_request
from meeting_bridge.services.webhook_dispatcher import WebhookDispatcher

logger = logging.getLogger(__name__)


class InstantCallService:
    """Starts a meeting right away and drops the join link into the channel or thread."""

    def __init__(
        self,
        *,
        settings: Settings,
        configuration: PluginConfiguration,
        host_api: HostApi,
        dispatcher: WebhookDispatcher | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.settings = settings
        self.configuration = configuration
        self.host_api = host_api
        self.dispatcher = dispatcher or WebhookDispatcher(settings.webhook_timeout_seconds)
        self.clock = clock
        self.identity_resolver = IdentityResolver(host_api)

    def start(self, raw_body: bytes) -> MeetingSuccessResponse:
        call_request = validate_instant_call_request(raw_body)
        user, channel = resolve_organizer_and_channel(
            self.identity_resolver,
            user_id=call_request.user_id,
            channel_id=call_request.channel_id,
        )
        webhook_url = require_webhook_url(self.configuration)

        payload = self.build_payload(call_request, user, channel)
        room_url = dispatch_to_webhook(self.dispatcher, webhook_url, payload)

        publish_post(
            self.host_api,
            HostPost(
                channel_id=channel.id,
                user_id=user.id,
                message=build_instant_call_post_message(room_url),
                root_id=call_request.root_id,
            ),
        )
        logger.info(
            "Instant call created channel_id=%s is_thread_reply=%s",
            channel.id,
            bool(call_request.root_id),
        )
        return build_success_response(INSTANT_CALL_SUCCESS_MESSAGE, room_url)

    def build_payload(
        self,
        call_request: InstantCallRequest,
        user: HostUser,
        channel: HostChannel,
    ) -> InstantCallPayload:
        now = self.clock().astimezone(UTC)
        timezone_name = self.settings.default_timezone
        local_now = now.astimezone(resolve_timezone(timezone_name))
        return InstantCallPayload(
            channel_id=channel.id,
            channel_name=channel.display_name or channel.name,
            channel_type=channel.type.value,
            team_id=call_request.team_id or channel.team_id,
            user_id=user.id,
            username=user.username,
            user_email=user.email or None,
            start_time_utc=format_rfc3339(now),
            start_time_local=format_rfc3339(local_now),
            timezone=timezone_name,
            root_id=call_request.root_id,
            is_thread_reply=bool(call_request.root_id),
            timestamp=format_rfc3339(now),
        )
