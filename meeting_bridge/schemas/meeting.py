from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meeting_bridge.schemas.host import HostChannel, HostUser

MIN_DURATION_MINUTES = 5
MAX_DURATION_MINUTES = 480
MAX_TITLE_LENGTH = 100


class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    errors: list[FieldError]
    execution_id: str | None = None


class MeetingSuccessResponse(BaseModel):
    status: str = "success"
    message: str
    room_url: str


class ScheduleMeetingRequest(BaseModel):
    model_config = ConfigDict(validate_default=True)

    channel_id: Annotated[str, Field(min_length=1)] = ""
    team_id: str = ""
    user_id: Annotated[str, Field(min_length=1)] = ""
    start_at: str = ""
    start_at_local: str = ""
    timezone: str = ""
    duration_minutes: Annotated[
        int,
        Field(ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES),
    ] = 0
    title: Annotated[str, Field(max_length=MAX_TITLE_LENGTH)] | None = None
    participant_ids: list[str] = Field(default_factory=list)
    root_id: str = ""

    @field_validator(
        "channel_id",
        "team_id",
        "user_id",
        "start_at",
        "start_at_local",
        "timezone",
        "root_id",
        mode="before",
    )
    @classmethod
    def null_to_empty_string(cls, value: object) -> object:
        if value is None:
            return ""
        return value

    @field_validator("participant_ids", mode="before")
    @classmethod
    def null_to_empty_list(cls, value: object) -> object:
        if value is None:
            return []
        return value


class InstantCallRequest(BaseModel):
    model_config = ConfigDict(validate_default=True)

    channel_id: Annotated[str, Field(min_length=1)] = ""
    team_id: str = ""
    user_id: Annotated[str, Field(min_length=1)] = ""
    root_id: str = ""

    @field_validator("channel_id", "team_id", "user_id", "root_id", mode="before")
    @classmethod
    def null_to_empty_string(cls, value: object) -> object:
        if value is None:
            return ""
        return value


class ScheduledTime(BaseModel):
    scheduled_at: datetime
    scheduled_at_local: datetime | None = None
    raw_local: str = ""


class ResolvedMeeting(BaseModel):
    scheduled_at: datetime
    end_time: datetime
    scheduled_at_local: datetime | None = None
    raw_local: str = ""
    timezone: str
    duration_minutes: int
    title: str = ""
    team_id: str = ""
    root_id: str = ""
    channel: HostChannel
    organizer: HostUser
    participants: list[HostUser]
