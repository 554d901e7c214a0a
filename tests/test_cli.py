"""Tests for the click CLI."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from click.testing import CliRunner


@pytest.fixture()
def runner():
    return CliRunner()


class TestCli:

    def test_link_code(self, runner):
        from vantake.cli import cli
        from vantake.notifications.telegram import LINKING_CODE_ALPHABET
        result = runner.invoke(cli, ["link-code"])
        assert result.exit_code == 0
        code = result.output.strip()
        assert len(code) == 8
        assert set(code) <= set(LINKING_CODE_ALPHABET)

    def test_proficiency_json(self, runner, monkeypatch):
        from vantake.cli import cli
        from vantake.connectors.polymarket_data import DataAPIClient, TraderPosition

        monkeypatch.setattr(DataAPIClient, "get_positions", AsyncMock(
            return_value=[TraderPosition(event_slug="bitcoin-x", cash_pnl=10.0)],
        ))
        monkeypatch.setattr(DataAPIClient, "get_trades", AsyncMock(return_value=[]))
        monkeypatch.setattr(DataAPIClient, "close", AsyncMock())

        result = runner.invoke(cli, ["proficiency", "--wallet", "0xabc", "--json"])
        assert result.exit_code == 0
        assert '"Crypto"' in result.output

    def test_proficiency_no_history(self, runner, monkeypatch):
        from vantake.cli import cli
        from vantake.connectors.polymarket_data import DataAPIClient

        monkeypatch.setattr(DataAPIClient, "get_positions", AsyncMock(return_value=[]))
        monkeypatch.setattr(DataAPIClient, "get_trades", AsyncMock(return_value=[]))
        monkeypatch.setattr(DataAPIClient, "close", AsyncMock())

        result = runner.invoke(cli, ["proficiency", "--wallet", "0xabc"])
        assert result.exit_code == 0
        assert "No trading history" in result.output

    @pytest.mark.parametrize("error", ["connect", "retry"])
    def test_proficiency_upstream_failure(self, runner, monkeypatch, error):
        import httpx
        from tenacity import RetryError

        from vantake.cli import cli
        from vantake.connectors.polymarket_data import DataAPIClient

        exc = httpx.ConnectError("down") if error == "connect" else RetryError(last_attempt=None)
        monkeypatch.setattr(DataAPIClient, "get_positions", AsyncMock(side_effect=exc))
        monkeypatch.setattr(DataAPIClient, "close", AsyncMock())

        result = runner.invoke(cli, ["proficiency", "--wallet", "0xabc"])
        assert result.exit_code == 1
        assert "Data API unavailable" in result.output
        assert "Traceback" not in result.output

    def test_notify_test_without_token(self, runner, monkeypatch, tmp_path):
        from vantake.cli import cli
        monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
        result = runner.invoke(
            cli, ["--config", str(tmp_path / "none.yaml"), "notify-test", "--chat", "42"],
        )
        assert result.exit_code == 1
        assert "TELEGRAM_BOT_TOKEN" in result.output
