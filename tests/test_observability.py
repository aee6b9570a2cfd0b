"""Unit tests for setup_logfire(); the logfire module is patched throughout."""

import logging

import pytest
from unittest.mock import MagicMock, patch

from creatorlens.core import observability


@pytest.fixture(autouse=True)
def fresh_state(monkeypatch):
    monkeypatch.setattr(observability, "_handler", None)
    yield
    handler = observability._handler
    if handler is not None:
        logging.getLogger().removeHandler(handler)


@pytest.fixture
def mock_logfire():
    mock = MagicMock()
    mock.LogfireLoggingHandler.return_value = logging.NullHandler()
    with patch("creatorlens.core.observability.logfire", mock):
        yield mock


class TestSetupLogfire:
    def test_skipped_without_token(self, monkeypatch, mock_logfire):
        monkeypatch.delenv("LOGFIRE_TOKEN", raising=False)

        assert observability.setup_logfire() is False
        assert observability.is_logfire_configured() is False
        mock_logfire.configure.assert_not_called()

    def test_configures_and_bridges_logging(self, monkeypatch, mock_logfire):
        monkeypatch.setenv("LOGFIRE_TOKEN", "tok")
        monkeypatch.setenv("LOGFIRE_ENVIRONMENT", "staging")

        assert observability.setup_logfire(service_name="creatorlens-test") is True

        mock_logfire.configure.assert_called_once_with(
            token="tok",
            service_name="creatorlens-test",
            environment="staging",
            send_to_logfire=True,
            console=False,
        )
        mock_logfire.instrument_pydantic.assert_called_once()
        assert observability._handler in logging.getLogger().handlers
        assert observability.is_logfire_configured() is True

    def test_second_call_is_a_no_op(self, monkeypatch, mock_logfire):
        monkeypatch.setenv("LOGFIRE_TOKEN", "tok")

        observability.setup_logfire()
        observability.setup_logfire()

        assert mock_logfire.configure.call_count == 1

    def test_configure_failure_returns_false(self, monkeypatch, mock_logfire):
        monkeypatch.setenv("LOGFIRE_TOKEN", "tok")
        mock_logfire.configure.side_effect = RuntimeError("bad token")

        assert observability.setup_logfire() is False
        assert observability.is_logfire_configured() is False
