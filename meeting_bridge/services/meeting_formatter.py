from collections.abc import Sequence
from datetime import UTC, datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from meeting_bridge.schemas.host import HostUser
from meeting_bridge.schemas.meeting import MeetingSuccessResponse, ResolvedMeeting

POST_DATETIME_FORMAT = "%d.%m.%Y, %H:%M"
SCHEDULE_SUCCESS_MESSAGE = "Meeting created successfully"
INSTANT_CALL_SUCCESS_MESSAGE = "Meeting room created successfully"


def resolve_timezone(timezone_name: str) -> tzinfo:
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        return UTC


def format_rfc3339(value: datetime) -> str:
    formatted = value.isoformat(timespec="seconds")
    if formatted.endswith("+00:00"):
        return formatted[: -len("+00:00")] + "Z"
    return formatted


def format_meeting_local_time(meeting: ResolvedMeeting) -> str:
    if meeting.scheduled_at_local is not None:
        return f"{meeting.scheduled_at_local.strftime(POST_DATETIME_FORMAT)} ({meeting.timezone})"
    zone = resolve_timezone(meeting.timezone)
    label = meeting.timezone if zone is not UTC else "UTC"
    local_value = meeting.scheduled_at.astimezone(zone)
    return f"{local_value.strftime(POST_DATETIME_FORMAT)} ({label})"


def format_participant_mentions(participants: Sequence[HostUser]) -> str:
    return ", ".join(f"@{participant.username}" for participant in participants if participant.username)


def build_schedule_post_message(meeting: ResolvedMeeting, room_url: str) -> str:
    organizer = meeting.organizer.username or "user"
    lines = [
        f"📅 @{organizer} scheduled a meeting for {format_meeting_local_time(meeting)}",
    ]
    if meeting.title:
        lines.append(f"**{meeting.title}**")
    lines.append(f"👥 Participants: {format_participant_mentions(meeting.participants)}")
    lines.append(f"⏱ Duration: {meeting.duration_minutes} minutes")
    if room_url:
        lines.append(f"[🔗 Join the meeting]({room_url})")
    return "\n\n".join(lines)


def build_instant_call_post_message(room_url: str) -> str:
    return f"📞 I started a meeting: {room_url}"


def build_success_response(message: str, room_url: str) -> MeetingSuccessResponse:
    return MeetingSuccessResponse(status="success", message=message, room_url=room_url)
