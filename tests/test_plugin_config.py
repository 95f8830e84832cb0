import logging

import pytest
from fastapi.testclient import TestClient

from meeting_bridge.core.config import get_settings
from meeting_bridge.main import app
from meeting_bridge.services.plugin_config_store import (
    get_plugin_configuration,
    invalidate_plugin_configuration,
)
from meeting_bridge.services.plugin_lifecycle import on_activate, on_configuration_change


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WEBHOOK_URL", "https://automation.example.com/webhook/meetings")
    monkeypatch.setenv("OPEN_IN_NEW_TAB", "false")
    monkeypatch.setenv("SERVICE_NAME", "Video Rooms")
    get_settings.cache_clear()
    invalidate_plugin_configuration()
    yield
    get_settings.cache_clear()
    invalidate_plugin_configuration()


def test_config_endpoint_returns_client_settings() -> None:
    client = TestClient(app)

    response = client.get("/config")

    assert response.status_code == 200
    assert response.json() == {
        "webhook_url": "https://automation.example.com/webhook/meetings",
        "open_in_new_tab": False,
        "service_name": "Video Rooms",
    }


def test_config_endpoint_only_allows_get() -> None:
    client = TestClient(app)

    response = client.post("/config", json={})

    assert response.status_code == 405


def test_configuration_is_cached_until_configuration_change(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    assert get_plugin_configuration().webhook_url.endswith("/meetings")

    monkeypatch.setenv("WEBHOOK_URL", "https://automation.example.com/webhook/v2")
    assert get_plugin_configuration().webhook_url.endswith("/meetings")

    on_configuration_change()
    assert get_plugin_configuration().webhook_url == "https://automation.example.com/webhook/v2"


def test_invalid_configuration_falls_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPEN_IN_NEW_TAB", "sometimes")

    configuration = get_plugin_configuration()

    assert configuration.webhook_url == ""
    assert configuration.open_in_new_tab is True
    assert configuration.webhook_configured is False


def test_activation_warns_without_webhook(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    monkeypatch.setenv("WEBHOOK_URL", "   ")

    with caplog.at_level(logging.WARNING, logger="meeting_bridge.services.plugin_lifecycle"):
        on_activate()

    assert "Webhook URL is not configured" in caplog.text


def test_reload_endpoint_applies_changed_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    client = TestClient(app)
    assert client.get("/config").json()["webhook_url"].endswith("/meetings")
    assert get_settings().webhook_timeout_seconds == 120

    monkeypatch.setenv("WEBHOOK_URL", "https://automation.example.com/webhook/v2")
    monkeypatch.setenv("WEBHOOK_TIMEOUT_SECONDS", "15")
    assert client.get("/config").json()["webhook_url"].endswith("/meetings")

    response = client.post("/config/reload")

    assert response.status_code == 200
    assert response.json()["webhook_url"] == "https://automation.example.com/webhook/v2"
    assert client.get("/config").json()["webhook_url"] == "https://automation.example.com/webhook/v2"
    assert get_settings().webhook_timeout_seconds == 15


def test_application_lifespan_runs_activation_and_deactivation(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.INFO, logger="meeting_bridge.services.plugin_lifecycle"):
        with TestClient(app) as client:
            assert client.get("/api/health").status_code == 200
            assert "Meeting plugin activated" in caplog.text
        assert "Meeting plugin deactivated" in caplog.text
