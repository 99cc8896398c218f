"""Tests for the auth audit log."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from runners_client.auth.events import AuthEvent, AuthEventBus, LogoutReason
from runners_client.auth.token_store import SessionToken, TokenOrigin, TokenStore
from runners_client.telemetry.audit.auth_logger import AuthLogger, create_auth_logger
from runners_client.telemetry.models.audit import AuthAuditRecord


def _read_records(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "audit" / "auth.jsonl"


@pytest.fixture
def auth_logger(log_path: Path):
    auth_logger = create_auth_logger(log_path)
    yield auth_logger
    for handler in logging.getLogger("runners-client.audit.auth").handlers:
        handler.close()


class TestAuthLogger:
    def test_token_stored_record_has_fingerprint_not_value(self, auth_logger: AuthLogger, log_path: Path):
        # Arrange
        token = SessionToken(value="super-secret-access-token", origin=TokenOrigin.REFRESHED)

        # Act
        auth_logger.log_token_stored(token)

        # Assert
        (record,) = _read_records(log_path)
        assert record["event_type"] == "token_stored"
        assert record["token_origin"] == "refreshed"
        assert record["token_fingerprint"] == token.fingerprint
        assert record["time"].endswith("Z")
        assert "super-secret-access-token" not in log_path.read_text()

    @pytest.mark.parametrize(
        ("reason", "status"),
        [
            (LogoutReason.USER_LOGOUT, "Success"),
            (LogoutReason.SESSION_EXPIRED, "Failure"),
            (LogoutReason.REMOTE_LOGOUT, "Failure"),
        ],
    )
    def test_logged_out_status(self, auth_logger: AuthLogger, log_path: Path, reason, status):
        auth_logger.log_logged_out(AuthEvent.logged_out(reason))

        (record,) = _read_records(log_path)
        assert record["event_type"] == "logged_out"
        assert record["reason"] == reason.value
        assert record["status"] == status

    def test_attach_follows_bus_and_store(self, auth_logger: AuthLogger, log_path: Path, bus: AuthEventBus, store: TokenStore):
        # Arrange
        detach = auth_logger.attach(bus, store)

        # Act
        store.set(SessionToken(value="a"))
        store.clear()
        bus.emit(AuthEvent.logged_out(LogoutReason.SESSION_EXPIRED))
        detach()
        store.set(SessionToken(value="b"))

        # Assert
        assert [r["event_type"] for r in _read_records(log_path)] == [
            "token_stored",
            "token_cleared",
            "logged_out",
        ]
        assert bus.listener_count == 0

    def test_write_failure_is_reported_not_raised(self):
        logger = MagicMock(spec=logging.Logger)
        logger.info.side_effect = OSError("disk full")
        auth_logger = AuthLogger(logger)

        assert auth_logger.log_token_cleared() is False


class TestAuthAuditRecord:
    def test_rejects_unknown_fields(self):
        with pytest.raises(ValueError):
            AuthAuditRecord(event_type="token_cleared", token_value="leak")
