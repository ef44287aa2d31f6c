"""Tests for configuration, logging, sessions, invite emails and notifications."""
import logging
from datetime import datetime, timedelta

import pytest

from planko.config import get_config, load_config, reset_config
from planko.models.user import User
from planko.services.auth import AuthService
from planko.services import notification as notification_module
from planko.services.notification import NotificationService
from planko.sync.notifier import NotificationLevel, Notifier
from planko.utils.logging import resolve_level, setup_logging


def test_defaults(config):
    assert config.database.path == "data/planko.db"
    assert config.ai.enabled is False
    assert config.sync.poll_interval_seconds == 30.0
    assert get_config() is config


def test_yaml_and_environment(tmp_path, monkeypatch):
    path = tmp_path / "planko.yml"
    path.write_text(
        "server:\n"
        "  port: 9000\n"
        "invites:\n"
        "  link_ttl_hours: 48\n"
        "sync:\n"
        "  poll_interval_seconds: 5\n"
    )
    monkeypatch.setenv("PLANKO_GEMINI_API_KEY", "secret")
    monkeypatch.setenv("PLANKO_DB_PATH", ":memory:")
    monkeypatch.setenv("PLANKO_SMTP_HOST", "smtp.example.com")
    reset_config()

    config = load_config(str(path))

    assert config.server.port == 9000
    assert config.invites.link_ttl_hours == 48
    assert config.sync.poll_interval_seconds == 5
    assert config.ai.enabled is True
    assert config.ai.api_key == "secret"
    assert config.database.path == ":memory:"
    assert config.smtp.enabled is True


def test_invite_url(config):
    config.invites.app_url = "https://planko.example.com/"

    url = NotificationService().build_invite_url("tok123")

    assert url == "https://planko.example.com/join/tok123"


@pytest.mark.asyncio
async def test_invite_email_skipped_without_smtp():
    assert await NotificationService().send_board_invite("a@example.com", "Board", "tok") is False


@pytest.mark.asyncio
async def test_invite_email_sent(config, monkeypatch):
    config.smtp.enabled = True
    config.smtp.host = "smtp.example.com"
    config.smtp.from_email = "noreply@example.com"
    sent = []

    async def fake_send(message, **kwargs):
        sent.append((message, kwargs))

    monkeypatch.setattr(notification_module.aiosmtplib, "send", fake_send)

    assert await NotificationService().send_board_invite(
        "guest@example.com", "Roadmap", "tok", invited_by="Olive"
    ) is True

    message, kwargs = sent[0]
    assert message["To"] == "guest@example.com"
    assert "Roadmap" in message["Subject"]
    assert kwargs["hostname"] == "smtp.example.com"


@pytest.mark.asyncio
async def test_invite_email_failure_returns_false(config, monkeypatch):
    config.smtp.enabled = True
    config.smtp.host = "smtp.example.com"

    async def failing_send(message, **kwargs):
        raise ConnectionRefusedError("no server")

    monkeypatch.setattr(notification_module.aiosmtplib, "send", failing_send)

    assert await NotificationService().send_board_invite("a@example.com", "Board", "tok") is False


def test_notifier_history_and_handlers():
    notifier = Notifier(history_size=2)
    received = []
    notifier.register_handler(received.append)

    def broken(notification):
        raise RuntimeError("handler failed")

    notifier.register_handler(broken)

    notifier.success("Saved")
    notifier.error("Failed to move task", RuntimeError("timeout"))
    notifier.error("Failed to delete task")

    assert [n.message for n in notifier.history] == ["Failed to move task", "Failed to delete task"]
    assert received[0].level == NotificationLevel.SUCCESS
    assert received[1].detail == "timeout"
    assert received[2].detail is None


def test_setup_logging_writes_file(config, tmp_path):
    log_file = tmp_path / "logs" / "planko.log"
    config.logging.file = str(log_file)
    root = logging.getLogger()
    previous = root.handlers[:]
    previous_level = root.level

    try:
        setup_logging("debug")
        logging.getLogger("planko.test").debug("board refreshed")
        for handler in root.handlers:
            handler.flush()

        assert root.level == logging.DEBUG
        assert "board refreshed" in log_file.read_text()
        assert logging.getLogger("httpx").level == logging.DEBUG
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = previous
        root.setLevel(previous_level)


def test_resolve_level():
    assert resolve_level("warning") == logging.WARNING
    assert resolve_level("nonsense") == logging.INFO


def test_purge_expired_sessions(config):
    config.session.timeout_minutes = 30
    auth = AuthService()
    user = User(id="u1", email="a@example.com", password_hash="x")

    fresh = auth.create_session(user)
    stale = auth.create_session(user)
    stale.last_activity = datetime.utcnow() - timedelta(hours=1)

    assert auth.purge_expired() == 1
    assert auth.get_session(fresh.session_id) is fresh
    assert auth.get_session(stale.session_id) is None
