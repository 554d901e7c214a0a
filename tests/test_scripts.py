"""Tests for the webhook maintenance scripts."""

from __future__ import annotations

import pytest


class TestCheckWebhook:

    def test_report_problem(self, capsys, monkeypatch):
        import scripts.check_telegram_webhook as mod
        probed = []
        monkeypatch.setattr(mod, "probe", lambda url: probed.append(url))

        mod.report({"ok": True, "result": {
            "url": "https://example.com/hook",
            "last_error_message": "Connection refused",
            "last_error_date": 1735689600,
        }})
        out = capsys.readouterr().out
        assert "--- PROBLEM DETECTED ---" in out
        assert "Connection refused" in out
        assert "2025-01-01T00:00:00+00:00" in out
        assert probed == ["https://example.com/hook"]

    def test_report_healthy_without_url(self, capsys, monkeypatch):
        import scripts.check_telegram_webhook as mod
        monkeypatch.setattr(mod, "probe", lambda url: pytest.fail("should not probe"))
        mod.report({"ok": True, "result": {"url": ""}})
        assert "PROBLEM" not in capsys.readouterr().out

    @pytest.mark.parametrize("module", [
        "scripts.check_telegram_webhook",
        "scripts.register_telegram_webhook",
    ])
    def test_missing_token_exits_1(self, module, monkeypatch):
        import importlib
        mod = importlib.import_module(module)
        monkeypatch.setattr(mod, "load_dotenv", lambda *a, **kw: False)
        monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
        with pytest.raises(SystemExit) as exc:
            mod.main()
        assert exc.value.code == 1


class TestRegisterWebhook:

    @pytest.mark.asyncio
    async def test_subscribes_to_messages_and_button_presses(self, capsys, monkeypatch):
        from unittest.mock import AsyncMock

        import scripts.register_telegram_webhook as mod
        from vantake.config import AppConfig

        fake = AsyncMock()
        fake.set_webhook = AsyncMock(return_value={"ok": True, "result": True})
        fake.get_webhook_info = AsyncMock(return_value={"ok": True, "result": {"url": "x"}})
        monkeypatch.setattr(mod, "load_config", lambda *a, **kw: AppConfig())
        monkeypatch.setattr(mod, "TelegramClient", lambda cfg: fake)

        await mod.register()

        args, kwargs = fake.set_webhook.call_args
        assert args[0] == AppConfig().telegram.webhook_url
        assert kwargs["allowed_updates"] == ["message", "callback_query"]
        assert kwargs["drop_pending_updates"] is True
        fake.close.assert_awaited_once()
        assert "Webhook info:" in capsys.readouterr().out
