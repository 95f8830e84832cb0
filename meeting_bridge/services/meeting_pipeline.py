"""Pipeline stages shared by the scheduled meeting and instant call flows."""

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import status
from pydantic import BaseModel

from meeting_bridge.core.errors import GENERAL_FIELD, MeetingRequestError
from meeting_bridge.schemas.host import HostChannel, HostPost, HostUser
from meeting_bridge.schemas.plugin_config import PluginConfiguration
from meeting_bridge.services.host_api import HostApi
from meeting_bridge.services.identity_resolver import IdentityResolver, NotFound
from meeting_bridge.services.webhook_dispatcher import (
    WebhookDispatcher,
    WebhookError,
    WebhookPayloadError,
)

logger = logging.getLogger(__name__)

MISSING_ROOM_URL_MESSAGE = "Meeting not created: the webhook did not return a room link"


def resolve_organizer_and_channel(
    identity_resolver: IdentityResolver,
    *,
    user_id: str,
    channel_id: str,
) -> tuple[HostUser, HostChannel]:
    user_outcome = identity_resolver.resolve_user(user_id)
    if isinstance(user_outcome, NotFound):
        raise MeetingRequestError.single(
            status.HTTP_404_NOT_FOUND,
            "user_id",
            f"User not found: {user_id}",
        )

    channel_outcome = identity_resolver.resolve_channel(channel_id)
    if isinstance(channel_outcome, NotFound):
        raise MeetingRequestError.single(
            status.HTTP_404_NOT_FOUND,
            "channel_id",
            f"Channel not found: {channel_id}",
        )

    return user_outcome.value, channel_outcome.value


def require_webhook_url(configuration: PluginConfiguration) -> str:
    if not configuration.webhook_configured:
        logger.error("Webhook URL not configured")
        raise MeetingRequestError.single(
            status.HTTP_400_BAD_REQUEST,
            GENERAL_FIELD,
            "Webhook URL is not configured. Contact your administrator.",
        )
    return configuration.webhook_url


def dispatch_to_webhook(
    dispatcher: WebhookDispatcher,
    webhook_url: str,
    payload: BaseModel | Mapping[str, Any],
) -> str:
    """Sends the payload and returns the room URL the webhook created."""
    try:
        result = dispatcher.send(webhook_url, payload)
    except WebhookPayloadError as exc:
        raise MeetingRequestError.internal(exc.message) from exc
    except WebhookError as exc:
        raise MeetingRequestError.single(
            exc.status_code,
            GENERAL_FIELD,
            exc.message,
            execution_id=exc.execution_id,
        ) from exc

    room_url = result.room_url
    if not room_url:
        logger.error("Webhook succeeded without a room URL")
        raise MeetingRequestError.single(
            status.HTTP_502_BAD_GATEWAY,
            GENERAL_FIELD,
            MISSING_ROOM_URL_MESSAGE,
        )
    return room_url


def publish_post(host_api: HostApi, post: HostPost) -> bool:
    # The meeting already exists downstream, so a failed post is only logged.
    try:
        app_error = host_api.create_post(post)
    except Exception:
        logger.exception("Failed to create post channel_id=%s", post.channel_id)
        return False
    if app_error is not None:
        logger.error(
            "Failed to create post channel_id=%s error=%s",
            post.channel_id,
            app_error.describe(),
        )
        return False
    logger.info("Post created channel_id=%s is_thread_reply=%s", post.channel_id, bool(post.root_id))
    return True
