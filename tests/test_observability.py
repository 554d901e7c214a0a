"""Tests for log redaction and Sentry event scrubbing."""

from __future__ import annotations


class TestRedaction:

    def test_sensitive_keys_masked(self):
        from vantake.observability.logger import _redact_processor
        event = {"event": "telegram.setup", "bot_token": "123:abc", "API_KEY": "k", "chat_id": "42"}
        out = _redact_processor(None, "info", event)
        assert out["bot_token"] == "***REDACTED***"
        assert out["API_KEY"] == "***REDACTED***"
        assert out["chat_id"] == "42"

    def test_get_logger_returns_bound_logger(self):
        from vantake.observability.logger import get_logger
        log = get_logger("vantake.test")
        assert hasattr(log, "info")


class TestSentryScrub:

    def test_extra_keys_masked(self):
        from vantake.observability.sentry_integration import scrub_event
        event = {"extra": {"telegram_token": "123:abc", "wallet": "0xabc"}}
        out = scrub_event(event, {})
        assert out["extra"]["telegram_token"] == "***REDACTED***"
        assert out["extra"]["wallet"] == "0xabc"

    def test_bot_url_token_masked(self):
        from vantake.observability.sentry_integration import scrub_event
        event = {"request": {"url": "https://api.telegram.org/bot123:abc/sendMessage"}}
        out = scrub_event(event, {})
        assert out["request"]["url"] == "https://api.telegram.org/bot***REDACTED***/sendMessage"

    def test_other_urls_untouched(self):
        from vantake.observability.sentry_integration import scrub_event
        event = {"request": {"url": "https://data-api.polymarket.com/trades"}}
        assert scrub_event(event, {})["request"]["url"] == "https://data-api.polymarket.com/trades"

    def test_init_without_dsn(self, monkeypatch):
        from vantake.observability.sentry_integration import init_sentry
        monkeypatch.delenv("SENTRY_DSN", raising=False)
        assert init_sentry() is False


BOT_TOKEN = "7012345678:AAHdqTcvCH1vGWJxfSeofSAs0K5PALDsaw"


class TestTokenScrubbing:

    def test_token_in_free_text(self):
        from vantake.observability.logger import scrub_text
        msg = f"ConnectError for url 'https://api.telegram.org/bot{BOT_TOKEN}/sendMessage'"
        out = scrub_text(msg)
        assert BOT_TOKEN not in out
        assert "/bot***REDACTED***/sendMessage" in out

    def test_processor_scrubs_string_values(self):
        from vantake.observability.logger import _redact_processor
        event = {"event": "telegram.request_error", "error": f"timeout {BOT_TOKEN}", "count": 3}
        out = _redact_processor(None, "error", event)
        assert BOT_TOKEN not in out["error"]
        assert out["count"] == 3

    def test_wallet_addresses_untouched(self):
        from vantake.observability.logger import scrub_text
        text = "0xabcdef0000000000000000000000000000001234"
        assert scrub_text(text) == text

    def test_exception_message_scrubbed(self):
        from vantake.observability.sentry_integration import scrub_event
        event = {"exception": {"values": [
            {"type": "ConnectError", "value": f"https://api.telegram.org/bot{BOT_TOKEN}/getMe"},
        ]}}
        out = scrub_event(event, {})
        assert BOT_TOKEN not in out["exception"]["values"][0]["value"]
