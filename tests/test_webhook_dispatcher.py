import io
import json
import socket
from urllib import error

import pytest

from meeting_bridge.services.webhook_dispatcher import (
    WebhookBadResponseError,
    WebhookDispatcher,
    WebhookLegacyError,
    WebhookPayloadError,
    WebhookRejectedError,
    WebhookStructuredError,
    WebhookTransportError,
    interpret_webhook_response,
)

WEBHOOK_URL = "https://automation.example.com/webhook/meeting"


class _MockResponse:
    def __init__(self, body: bytes, status: int = 200) -> None:
        self._body = body
        self.status = status

    def __enter__(self) -> "_MockResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:  # type: ignore[no-untyped-def]
        return False

    def read(self) -> bytes:
        return self._body


def _json_body(payload: object) -> bytes:
    return json.dumps(payload).encode("utf-8")


def _http_error(status_code: int, body: bytes) -> error.HTTPError:
    return error.HTTPError(
        url=WEBHOOK_URL,
        code=status_code,
        msg="error",
        hdrs=None,
        fp=io.BytesIO(body),
    )


def test_send_posts_json_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_urlopen(req, timeout=10):  # type: ignore[no-untyped-def]
        captured["url"] = req.full_url
        captured["method"] = req.get_method()
        captured["content_type"] = req.headers.get("Content-type")
        captured["payload"] = json.loads(req.data.decode("utf-8"))
        captured["timeout"] = timeout
        return _MockResponse(_json_body({"success": True, "room_url": "https://meet.example.com/r/1"}))

    monkeypatch.setattr("meeting_bridge.services.webhook_dispatcher.request.urlopen", fake_urlopen)

    result = WebhookDispatcher(timeout_seconds=42).send(WEBHOOK_URL, {"title": "Sync"})

    assert result.room_url == "https://meet.example.com/r/1"
    assert captured == {
        "url": WEBHOOK_URL,
        "method": "POST",
        "content_type": "application/json",
        "payload": {"title": "Sync"},
        "timeout": 42,
    }


@pytest.mark.parametrize(
    ("body", "expected_room_url"),
    [
        ({"success": True, "room_url": "https://meet.example.com/r/1"}, "https://meet.example.com/r/1"),
        ({"meeting_url": " https://meet.example.com/r/2 "}, "https://meet.example.com/r/2"),
        ({"success": "yes", "room_url": "https://a", "meeting_url": "https://b"}, "https://a"),
        ({"success": 1, "room_url": "", "meeting_url": "https://b"}, "https://b"),
        ({"success": None, "room_url": "https://a"}, "https://a"),
        ({}, ""),
    ],
)
def test_interpret_webhook_response_accepts_success_bodies(
    body: dict[str, object],
    expected_room_url: str,
) -> None:
    result = interpret_webhook_response(200, _json_body(body))

    assert result.room_url == expected_room_url


def test_interpret_webhook_response_treats_empty_body_as_empty_object() -> None:
    result = interpret_webhook_response(200, b"")

    assert result.body == {}
    assert result.room_url == ""


@pytest.mark.parametrize("success_value", [False, "false", "no", 0, ""])
def test_interpret_webhook_response_rejects_falsy_success(success_value: object) -> None:
    with pytest.raises(WebhookRejectedError) as exc_info:
        interpret_webhook_response(200, _json_body({"success": success_value}))

    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Could not create meeting"


def test_interpret_webhook_response_uses_rejection_message() -> None:
    with pytest.raises(WebhookRejectedError, match="Room quota exceeded"):
        interpret_webhook_response(
            200,
            _json_body({"success": False, "message": "Room quota exceeded"}),
        )


def test_send_maps_structured_client_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(req, timeout=10):  # type: ignore[no-untyped-def]
        raise _http_error(
            422,
            _json_body({"status": "error", "message": "Room limit reached", "execution_id": "exec-42"}),
        )

    monkeypatch.setattr("meeting_bridge.services.webhook_dispatcher.request.urlopen", fake_urlopen)

    with pytest.raises(WebhookStructuredError) as exc_info:
        WebhookDispatcher().send(WEBHOOK_URL, {"title": "Sync"})

    assert exc_info.value.status_code == 422
    assert exc_info.value.message == "Room limit reached"
    assert exc_info.value.execution_id == "exec-42"


def test_structured_server_error_becomes_bad_request() -> None:
    with pytest.raises(WebhookStructuredError) as exc_info:
        interpret_webhook_response(503, _json_body({"status": "error"}))

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Error while creating the meeting (status 503)"
    assert exc_info.value.execution_id is None


@pytest.mark.parametrize(
    ("status_code", "body", "expected_status", "expected_message"),
    [
        (404, {"message": "Workflow not found"}, 404, "Workflow not found"),
        (500, {"error": "boom"}, 500, "boom"),
        (502, {}, 500, "Webhook returned an error (status 502)"),
        (201, {"room_url": "https://meet.example.com/r/1"}, 500, "Webhook returned an error (status 201)"),
    ],
)
def test_legacy_error_statuses(
    status_code: int,
    body: dict[str, object],
    expected_status: int,
    expected_message: str,
) -> None:
    with pytest.raises(WebhookLegacyError) as exc_info:
        interpret_webhook_response(status_code, _json_body(body))

    assert exc_info.value.status_code == expected_status
    assert exc_info.value.message == expected_message


@pytest.mark.parametrize("body", [b"<html>Bad Gateway</html>", b"[1, 2]"])
def test_unparseable_response_is_bad_gateway(body: bytes) -> None:
    with pytest.raises(WebhookBadResponseError) as exc_info:
        interpret_webhook_response(200, body)

    assert exc_info.value.status_code == 502
    assert "status 200" in exc_info.value.message


def test_send_reports_connection_failure_with_url(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(req, timeout=10):  # type: ignore[no-untyped-def]
        raise error.URLError(ConnectionRefusedError(111, "Connection refused"))

    monkeypatch.setattr("meeting_bridge.services.webhook_dispatcher.request.urlopen", fake_urlopen)

    with pytest.raises(WebhookTransportError) as exc_info:
        WebhookDispatcher().send(WEBHOOK_URL, {"title": "Sync"})

    assert exc_info.value.status_code == 500
    assert WEBHOOK_URL in exc_info.value.message
    assert "The workflow is activated" in exc_info.value.message


def test_send_reports_timeout_as_transport_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(req, timeout=10):  # type: ignore[no-untyped-def]
        raise socket.timeout("timed out")

    monkeypatch.setattr("meeting_bridge.services.webhook_dispatcher.request.urlopen", fake_urlopen)

    with pytest.raises(WebhookTransportError) as exc_info:
        WebhookDispatcher(timeout_seconds=1).send(WEBHOOK_URL, {"title": "Sync"})

    assert exc_info.value.reason == "request timed out"


def test_send_rejects_invalid_url_without_network() -> None:
    with pytest.raises(WebhookTransportError):
        WebhookDispatcher().send("not a url", {"title": "Sync"})


def test_send_fails_before_network_when_payload_cannot_be_serialized(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_urlopen(req, timeout=10):  # type: ignore[no-untyped-def]
        raise AssertionError("webhook must not be called")

    monkeypatch.setattr("meeting_bridge.services.webhook_dispatcher.request.urlopen", fake_urlopen)

    with pytest.raises(WebhookPayloadError) as exc_info:
        WebhookDispatcher().send(WEBHOOK_URL, {"duration": float("nan")})

    assert exc_info.value.message.startswith("Failed to prepare data for sending")
