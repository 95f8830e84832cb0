from typing import Any, Literal

from pydantic import BaseModel, Field

ROOM_URL_FIELD = "room_url"
MEETING_URL_FIELD = "meeting_url"


class WebhookParticipant(BaseModel):
    user_id: str
    username: str
    email: str
    first_name: str
    last_name: str


class WebhookPayload(BaseModel):
    operation_type: Literal["scheduled_meeting"] = "scheduled_meeting"
    scheduled_at: str
    scheduled_at_local: str
    end_time: str
    end_time_local: str
    timezone: str
    duration_minutes: int
    title: str
    description: str | None = None
    channel_id: str
    channel_name: str
    channel_type: str
    team_id: str
    user_id: str
    username: str
    user_email: str
    participants: list[WebhookParticipant]
    auto_detected: bool = False
    source: str = "user_selection"
    root_id: str = ""
    is_thread_reply: bool = False
    timestamp: str


class InstantCallPayload(BaseModel):
    operation_type: Literal["instant_call"] = "instant_call"
    channel_id: str
    channel_name: str
    channel_type: str
    team_id: str
    user_id: str
    username: str
    user_email: str | None = None
    start_time_utc: str
    start_time_local: str
    timezone: str
    root_id: str = ""
    is_thread_reply: bool = False
    timestamp: str


class WebhookResult(BaseModel):
    body: dict[str, Any] = Field(default_factory=dict)

    @property
    def room_url(self) -> str:
        for key in (ROOM_URL_FIELD, MEETING_URL_FIELD):
            value = self.body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return ""
