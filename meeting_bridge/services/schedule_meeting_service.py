import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from fastapi import status

from meeting_bridge.core.config import Settings
from meeting_bridge.core.errors import MeetingRequestError
from meeting_bridge.schemas.host import HostPost
from meeting_bridge.schemas.meeting import (
    MeetingSuccessResponse,
    ResolvedMeeting,
    ScheduleMeetingRequest,
)
from meeting_bridge.schemas.plugin_config import PluginConfiguration
from meeting_bridge.schemas.webhook import WebhookParticipant, WebhookPayload
from meeting_bridge.services.datetime_normalizer import (
    DateTimeNormalizationError,
    DateTimeNormalizer,
    utc_now,
)
from meeting_bridge.services.host_api import HostApi
from meeting_bridge.services.identity_resolver import IdentityResolver
from meeting_bridge.services.meeting_formatter import (
    SCHEDULE_SUCCESS_MESSAGE,
    build_schedule_post_message,
    build_success_response,
    format_rfc3339,
)
from meeting_bridge.services.meeting_pipeline import (
    dispatch_to_webhook,
    publish_post,
    require_webhook_url,
    resolve_organizer_and_channel,
)
from meeting_bridge.services.participant_resolver import (
    ParticipantResolutionError,
    ParticipantResolver,
)
from meeting_bridge.services.request_validator import validate_schedule_request
from meeting_bridge.services.webhook_dispatcher import WebhookDispatcher

logger = logging.getLogger(__name__)

# Date errors are always reported on the priority field, even for start_at input.
DATETIME_ERROR_FIELD = "start_at_local"


class ScheduleMeetingService:
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
        self.participant_resolver = ParticipantResolver(self.identity_resolver)
        self.datetime_normalizer = DateTimeNormalizer(clock=clock)

    def schedule(self, raw_body: bytes) -> MeetingSuccessResponse:
        schedule_request = validate_schedule_request(raw_body)

        try:
            scheduled_time = self.datetime_normalizer.normalize(schedule_request)
        except DateTimeNormalizationError as exc:
            raise MeetingRequestError.single(
                status.HTTP_400_BAD_REQUEST,
                DATETIME_ERROR_FIELD,
                str(exc),
            ) from exc

        organizer, channel = resolve_organizer_and_channel(
            self.identity_resolver,
            user_id=schedule_request.user_id,
            channel_id=schedule_request.channel_id,
        )
        logger.info(
            "Organizer and channel loaded user_id=%s channel_id=%s channel_type=%s",
            organizer.id,
            channel.id,
            channel.type.value,
        )

        try:
            resolution = self.participant_resolver.resolve(
                schedule_request.participant_ids,
                channel,
                schedule_request.user_id,
            )
        except ParticipantResolutionError as exc:
            raise MeetingRequestError.single(
                status.HTTP_400_BAD_REQUEST,
                "participant_ids",
                str(exc),
            ) from exc

        webhook_url = require_webhook_url(self.configuration)

        meeting = ResolvedMeeting(
            scheduled_at=scheduled_time.scheduled_at,
            end_time=scheduled_time.scheduled_at + timedelta(minutes=schedule_request.duration_minutes),
            scheduled_at_local=scheduled_time.scheduled_at_local,
            raw_local=scheduled_time.raw_local,
            timezone=schedule_request.timezone.strip() or self.settings.default_timezone,
            duration_minutes=schedule_request.duration_minutes,
            title=schedule_request.title or "",
            team_id=schedule_request.team_id,
            root_id=schedule_request.root_id,
            channel=channel,
            organizer=organizer,
            participants=resolution.participants,
        )

        room_url = dispatch_to_webhook(
            self.dispatcher,
            webhook_url,
            self.build_webhook_payload(meeting),
        )

        publish_post(
            self.host_api,
            HostPost(
                channel_id=channel.id,
                user_id=organizer.id,
                message=build_schedule_post_message(meeting, room_url),
                root_id=meeting.root_id,
            ),
        )

        logger.info(
            "Meeting scheduled channel_id=%s participant_count=%s duration_minutes=%s",
            channel.id,
            len(meeting.participants),
            meeting.duration_minutes,
        )
        return build_success_response(SCHEDULE_SUCCESS_MESSAGE, room_url)

    def build_webhook_payload(self, meeting: ResolvedMeeting) -> WebhookPayload:
        scheduled_at_utc = format_rfc3339(meeting.scheduled_at)
        end_time_utc = format_rfc3339(meeting.end_time)
        if meeting.scheduled_at_local is not None:
            local_zone = meeting.scheduled_at_local.tzinfo
            scheduled_at_local = meeting.raw_local
            end_time_local = format_rfc3339(meeting.end_time.astimezone(local_zone))
        else:
            scheduled_at_local = scheduled_at_utc
            end_time_local = end_time_utc

        return WebhookPayload(
            scheduled_at=scheduled_at_utc,
            scheduled_at_local=scheduled_at_local,
            end_time=end_time_utc,
            end_time_local=end_time_local,
            timezone=meeting.timezone,
            duration_minutes=meeting.duration_minutes,
            title=meeting.title,
            channel_id=meeting.channel.id,
            channel_name=meeting.channel.name,
            channel_type=meeting.channel.type.value,
            team_id=meeting.team_id or meeting.channel.team_id,
            user_id=meeting.organizer.id,
            username=meeting.organizer.username,
            user_email=meeting.organizer.email,
            participants=[
                WebhookParticipant(
                    user_id=participant.id,
                    username=participant.username,
                    email=participant.email,
                    first_name=participant.first_name,
                    last_name=participant.last_name,
                )
                for participant in meeting.participants
            ],
            root_id=meeting.root_id,
            is_thread_reply=bool(meeting.root_id),
            timestamp=format_rfc3339(self.clock().astimezone(UTC)),
        )
