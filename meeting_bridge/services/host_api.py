from __future__ import annotations

from abc import ABC, abstractmethod
from functools import lru_cache

from meeting_bridge.core.config import Settings
from meeting_bridge.schemas.host import HostAppError, HostChannel, HostPost, HostUser


class HostApi(ABC):
    """
    Directory and posting primitives supplied by the chat platform.

    Lookups follow the platform convention of returning a value and an error
    together; either, both or neither may be set.
    """

    @abstractmethod
    def get_user(self, user_id: str) -> tuple[HostUser | None, HostAppError | None]:
        raise NotImplementedError

    @abstractmethod
    def get_channel(self, channel_id: str) -> tuple[HostChannel | None, HostAppError | None]:
        raise NotImplementedError

    @abstractmethod
    def create_post(self, post: HostPost) -> HostAppError | None:
        raise NotImplementedError


class InMemoryHostApi(HostApi):
    def __init__(self) -> None:
        self._users_by_id: dict[str, HostUser] = {}
        self._channels_by_id: dict[str, HostChannel] = {}
        self._posts: list[HostPost] = []

    def add_user(self, user: HostUser) -> None:
        self._users_by_id[user.id] = user

    def add_channel(self, channel: HostChannel) -> None:
        self._channels_by_id[channel.id] = channel

    @property
    def posts(self) -> list[HostPost]:
        return list(self._posts)

    def get_user(self, user_id: str) -> tuple[HostUser | None, HostAppError | None]:
        user = self._users_by_id.get(user_id)
        if not user:
            return None, HostAppError(
                id="app.user.missing_account.const",
                message="Unable to find the user.",
                status_code=404,
            )
        return user.model_copy(), None

    def get_channel(self, channel_id: str) -> tuple[HostChannel | None, HostAppError | None]:
        channel = self._channels_by_id.get(channel_id)
        if not channel:
            return None, HostAppError(
                id="app.channel.get.existing.app_error",
                message="Unable to find the existing channel.",
                status_code=404,
            )
        return channel.model_copy(), None

    def create_post(self, post: HostPost) -> HostAppError | None:
        if post.channel_id not in self._channels_by_id:
            return HostAppError(
                id="api.post.create_post.channel_not_found.app_error",
                message="Unable to create the post in a missing channel.",
                status_code=400,
            )
        self._posts.append(post.model_copy())
        return None


def create_host_api(settings: Settings) -> HostApi:
    return _create_host_api_cached(
        host_api_store=settings.host_api_store,
        mattermost_url=settings.mattermost_url,
        mattermost_bot_token=settings.mattermost_bot_token,
        mattermost_api_timeout_seconds=settings.mattermost_api_timeout_seconds,
    )


@lru_cache
def _create_host_api_cached(
    *,
    host_api_store: str,
    mattermost_url: str,
    mattermost_bot_token: str,
    mattermost_api_timeout_seconds: float,
) -> HostApi:
    if host_api_store == "memory":
        return InMemoryHostApi()

    if host_api_store == "mattermost":
        from meeting_bridge.services.mattermost_api_client import MattermostHostApi

        return MattermostHostApi(
            base_url=mattermost_url,
            bot_token=mattermost_bot_token,
            timeout_seconds=mattermost_api_timeout_seconds,
        )

    raise ValueError(f"Unsupported HOST_API_STORE value: {host_api_store}")


def clear_host_api_cache() -> None:
    _create_host_api_cached.cache_clear()
