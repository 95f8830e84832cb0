import json
import logging
from http.client import HTTPException as HTTPClientException
from typing import Any
from urllib import error, parse, request

from pydantic import ValidationError

from meeting_bridge.schemas.host import HostAppError, HostChannel, HostPost, HostUser
from meeting_bridge.services.host_api import HostApi

logger = logging.getLogger(__name__)


class MattermostApiError(Exception):
    def __init__(self, app_error: HostAppError) -> None:
        super().__init__(app_error.describe())
        self.app_error = app_error


class MattermostHostApi(HostApi):
    """
    Host API backed by the Mattermost REST API (v4).

    Posts are authored by the bot account that owns the token.
    """

    def __init__(
        self,
        *,
        base_url: str,
        bot_token: str,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.bot_token = bot_token
        self.timeout_seconds = timeout_seconds

    def get_user(self, user_id: str) -> tuple[HostUser | None, HostAppError | None]:
        try:
            payload = self._request_json("GET", f"/users/{parse.quote(user_id, safe='')}")
        except MattermostApiError as exc:
            return None, exc.app_error
        try:
            return HostUser.model_validate(payload), None
        except ValidationError:
            return None, HostAppError(
                id="meeting_bridge.host.invalid_user",
                message="Mattermost returned an invalid user record.",
            )

    def get_channel(self, channel_id: str) -> tuple[HostChannel | None, HostAppError | None]:
        try:
            payload = self._request_json("GET", f"/channels/{parse.quote(channel_id, safe='')}")
        except MattermostApiError as exc:
            return None, exc.app_error
        try:
            return HostChannel.model_validate(payload), None
        except ValidationError:
            return None, HostAppError(
                id="meeting_bridge.host.invalid_channel",
                message="Mattermost returned an invalid channel record.",
            )

    def create_post(self, post: HostPost) -> HostAppError | None:
        payload: dict[str, Any] = {
            "channel_id": post.channel_id,
            "message": post.message,
        }
        if post.root_id:
            payload["root_id"] = post.root_id
        try:
            self._request_json("POST", "/posts", payload=payload)
        except MattermostApiError as exc:
            return exc.app_error
        return None

    def _request_json(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        target = f"{self.base_url}/api/v4{path}"
        raw_payload: bytes | None = None
        if payload is not None:
            raw_payload = json.dumps(payload).encode("utf-8")

        try:
            req = request.Request(
                target,
                data=raw_payload,
                method=method,
                headers={
                    "Authorization": f"Bearer {self.bot_token}",
                    "Content-Type": "application/json",
                },
            )
            with request.urlopen(req, timeout=self.timeout_seconds) as response:
                response_body = response.read()
        except TimeoutError as exc:
            raise MattermostApiError(
                HostAppError(
                    id="meeting_bridge.host.timeout",
                    message="Mattermost API request timed out.",
                ),
            ) from exc
        except error.HTTPError as exc:
            body = exc.read().decode("utf-8", errors="ignore")
            logger.warning("Mattermost API error method=%s path=%s status_code=%s", method, path, exc.code)
            raise MattermostApiError(_parse_app_error(body, exc.code)) from exc
        except error.URLError as exc:
            raise MattermostApiError(
                HostAppError(
                    id="meeting_bridge.host.connection",
                    message=f"Mattermost API connection error: {exc.reason}",
                ),
            ) from exc
        except (HTTPClientException, OSError, ValueError) as exc:
            logger.warning("Mattermost API connection dropped method=%s path=%s error=%s", method, path, exc)
            raise MattermostApiError(
                HostAppError(
                    id="meeting_bridge.host.connection",
                    message=f"Mattermost API connection error: {exc}",
                ),
            ) from exc

        try:
            parsed_body = json.loads(response_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MattermostApiError(
                HostAppError(
                    id="meeting_bridge.host.invalid_json",
                    message="Mattermost API returned invalid JSON.",
                ),
            ) from exc

        if not isinstance(parsed_body, dict):
            raise MattermostApiError(
                HostAppError(
                    id="meeting_bridge.host.invalid_json",
                    message="Mattermost API response is not a JSON object.",
                ),
            )
        return parsed_body


def _parse_app_error(body: str, status_code: int) -> HostAppError:
    try:
        parsed_body = json.loads(body) if body else {}
    except json.JSONDecodeError:
        parsed_body = {}
    if not isinstance(parsed_body, dict):
        parsed_body = {}

    def _text(key: str) -> str:
        value = parsed_body.get(key)
        return value.strip() if isinstance(value, str) else ""

    return HostAppError(
        id=_text("id"),
        message=_text("message"),
        detailed_error=_text("detailed_error"),
        status_code=status_code,
    )
