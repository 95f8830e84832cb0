import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

from meeting_bridge.schemas.host import HostAppError, HostChannel, HostUser
from meeting_bridge.services.host_api import HostApi

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


@dataclass(frozen=True)
class NotFound:
    reason: str


def _classify_missing(app_error: HostAppError | None) -> str:
    if app_error is None:
        return "not found"
    return app_error.describe()


class IdentityResolver:
    """
    Wraps host lookups into a single found/not-found outcome.

    A returned value always wins over an accompanying error.
    """

    def __init__(self, host_api: HostApi) -> None:
        self.host_api = host_api

    def resolve_user(self, user_id: str) -> Found[HostUser] | NotFound:
        if not user_id:
            return NotFound(reason="user ID is empty")

        user, app_error = self.host_api.get_user(user_id)
        if user is not None:
            if app_error is not None:
                logger.info("User lookup returned an error alongside the user user_id=%s", user_id)
            return Found(user)

        reason = _classify_missing(app_error)
        logger.error("Failed to get user user_id=%s error=%s", user_id, reason)
        return NotFound(reason=reason)

    def resolve_channel(self, channel_id: str) -> Found[HostChannel] | NotFound:
        if not channel_id:
            return NotFound(reason="channel ID is empty")

        channel, app_error = self.host_api.get_channel(channel_id)
        if channel is not None:
            if app_error is not None:
                logger.info(
                    "Channel lookup returned an error alongside the channel channel_id=%s",
                    channel_id,
                )
            return Found(channel)

        reason = _classify_missing(app_error)
        logger.error("Failed to get channel channel_id=%s error=%s", channel_id, reason)
        return NotFound(reason=reason)
