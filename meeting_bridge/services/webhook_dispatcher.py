import json
import logging
from collections.abc import Mapping
from http.client import HTTPException as HTTPClientException
from typing import Any
from urllib import error, request

from fastapi import status
from pydantic import BaseModel

from meeting_bridge.core.config import DEFAULT_WEBHOOK_TIMEOUT_SECONDS
from meeting_bridge.schemas.webhook import WebhookResult

logger = logging.getLogger(__name__)

STRUCTURED_ERROR_STATUS = "error"
TRUTHY_SUCCESS_STRINGS = frozenset({"true", "1", "yes"})
BODY_EXCERPT_LIMIT = 500


class WebhookError(Exception):
    """Base class for every way a webhook call can fail."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    execution_id: str | None = None

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class WebhookPayloadError(WebhookError):
    pass


class WebhookTransportError(WebhookError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(
            "Could not create the meeting.\n\n"
            "Could not connect to the webhook:\n"
            f"{url}\n\n"
            "Check that:\n"
            "1. The automation service is running and reachable\n"
            "2. The workflow is activated\n"
            "3. The URL is correct",
        )
        self.url = url
        self.reason = reason


class WebhookBadResponseError(WebhookError):
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, remote_status: int, reason: str, body_excerpt: str) -> None:
        super().__init__(
            f"Invalid response format from webhook (status {remote_status}): {reason}. "
            f"Response: {body_excerpt}",
        )
        self.remote_status = remote_status


class WebhookStructuredError(WebhookError):
    def __init__(self, message: str, remote_status: int, execution_id: str | None = None) -> None:
        super().__init__(message)
        self.remote_status = remote_status
        self.execution_id = execution_id
        self.status_code = _clamp_to_client_error(remote_status, status.HTTP_400_BAD_REQUEST)


class WebhookLegacyError(WebhookError):
    def __init__(self, message: str, remote_status: int) -> None:
        super().__init__(message)
        self.remote_status = remote_status
        self.status_code = _clamp_to_client_error(
            remote_status,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class WebhookRejectedError(WebhookError):
    """The webhook answered 200 but flagged the operation as unsuccessful."""


def _clamp_to_client_error(remote_status: int, fallback: int) -> int:
    if 400 <= remote_status <= 499:
        return remote_status
    return fallback


class WebhookDispatcher:
    def __init__(self, timeout_seconds: float = DEFAULT_WEBHOOK_TIMEOUT_SECONDS) -> None:
        self.timeout_seconds = timeout_seconds

    def send(self, url: str, payload: BaseModel | Mapping[str, Any]) -> WebhookResult:
        raw_payload = _serialize_payload(payload)
        logger.info("Sending webhook url=%s payload_size=%s", url, len(raw_payload))

        try:
            req = request.Request(
                url,
                data=raw_payload,
                method="POST",
                headers={"Content-Type": "application/json"},
            )
            with request.urlopen(req, timeout=self.timeout_seconds) as response:
                status_code = response.status
                response_body = response.read()
        except error.HTTPError as exc:
            status_code = exc.code
            response_body = exc.read() or b""
        except TimeoutError as exc:
            logger.error("Webhook request timed out url=%s", url)
            raise WebhookTransportError(url, "request timed out") from exc
        except error.URLError as exc:
            logger.error("Failed to send webhook request url=%s error=%s", url, exc.reason)
            raise WebhookTransportError(url, str(exc.reason)) from exc
        except (ConnectionError, HTTPClientException, ValueError) as exc:
            logger.error("Failed to send webhook request url=%s error=%s", url, exc)
            raise WebhookTransportError(url, str(exc)) from exc

        logger.info(
            "Webhook response received status_code=%s body_length=%s",
            status_code,
            len(response_body),
        )
        return interpret_webhook_response(status_code, response_body)


def interpret_webhook_response(status_code: int, response_body: bytes) -> WebhookResult:
    webhook_data = _parse_response_body(status_code, response_body)

    if status_code != status.HTTP_200_OK:
        if webhook_data.get("status") == STRUCTURED_ERROR_STATUS:
            message = _non_empty_text(webhook_data, "message") or (
                f"Error while creating the meeting (status {status_code})"
            )
            execution_id = _non_empty_text(webhook_data, "execution_id")
            logger.error(
                "Webhook returned structured error status_code=%s execution_id=%s",
                status_code,
                execution_id,
            )
            raise WebhookStructuredError(message, status_code, execution_id)

        message = (
            _non_empty_text(webhook_data, "message")
            or _non_empty_text(webhook_data, "error")
            or f"Webhook returned an error (status {status_code})"
        )
        logger.error("Webhook returned error status status_code=%s", status_code)
        raise WebhookLegacyError(message, status_code)

    if "success" in webhook_data and not _is_truthy_success(webhook_data["success"]):
        message = _non_empty_text(webhook_data, "message") or "Could not create meeting"
        logger.error("Webhook returned success=false")
        raise WebhookRejectedError(message)

    return WebhookResult(body=webhook_data)


def _serialize_payload(payload: BaseModel | Mapping[str, Any]) -> bytes:
    try:
        if isinstance(payload, BaseModel):
            data: Any = payload.model_dump(mode="json")
        else:
            data = dict(payload)
        return json.dumps(data, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        logger.error("Failed to marshal webhook payload error=%s", exc)
        raise WebhookPayloadError(f"Failed to prepare data for sending: {exc}") from exc


def _parse_response_body(status_code: int, response_body: bytes) -> dict[str, Any]:
    if not response_body:
        logger.warning("Webhook returned empty body status_code=%s", status_code)
        return {}

    body_text = response_body.decode("utf-8", errors="replace")
    try:
        parsed_body = json.loads(body_text)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse webhook response JSON status_code=%s", status_code)
        raise WebhookBadResponseError(
            status_code,
            str(exc),
            body_text[:BODY_EXCERPT_LIMIT],
        ) from exc

    if not isinstance(parsed_body, dict):
        raise WebhookBadResponseError(
            status_code,
            "response is not a JSON object",
            body_text[:BODY_EXCERPT_LIMIT],
        )
    return parsed_body


def _is_truthy_success(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value in TRUTHY_SUCCESS_STRINGS
    if isinstance(value, int | float):
        return value != 0
    return True


def _non_empty_text(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if isinstance(value, str) and value:
        return value
    return None
