"""Telegram Bot API wrapper.

Thin async wrappers around the Bot API methods the notification layer
needs: sendMessage, sendPhoto, editMessageText, editMessageCaption,
answerCallbackQuery, setWebhook, deleteWebhook, getWebhookInfo.

Each call is a single POST with a JSON body.  Nothing is retried or
queued: a non-2xx response (or a transport error) is logged and reported
back as ``False`` so the caller can decide whether it matters.  The bot
token comes from ``TELEGRAM_BOT_TOKEN`` (via config); calling any API
method without one raises ``TelegramConfigError``.

Also here: inline keyboards, trade-alert formatting and account linking
codes.
"""

from __future__ import annotations

import html
import secrets
from dataclasses import dataclass
from typing import Any

import httpx

from vantake.config import TelegramConfig, load_config
from vantake.connectors.polymarket_data import TraderTrade
from vantake.observability.logger import get_logger

log = get_logger(__name__)

POLYMARKET_EVENT_URL = "https://polymarket.com/event/"
LINKING_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"  # no 0/O, 1/I/L
DEFAULT_BRAND_LINE = "Vantake — Real-time Capital Intelligence"

InlineKeyboard = dict[str, Any]


class TelegramConfigError(RuntimeError):
    """Raised when the bot token is not configured."""


# ── Client ───────────────────────────────────────────────────────────

class TelegramClient:
    """Async Telegram Bot API client."""

    def __init__(self, config: TelegramConfig | None = None):
        self._cfg = config or load_config().telegram
        self._client: httpx.AsyncClient | None = None

    def _token(self) -> str:
        if not self._cfg.bot_token:
            raise TelegramConfigError("Missing TELEGRAM_BOT_TOKEN")
        return self._cfg.bot_token

    def _url(self, method: str) -> str:
        return f"{self._cfg.api_base}{self._token()}/{method}"

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._cfg.timeout_secs),
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _post(self, method: str, payload: dict[str, Any] | None = None) -> httpx.Response | None:
        url = self._url(method)
        client = await self._ensure_client()
        try:
            if payload is None:
                return await client.post(url)
            return await client.post(url, json=payload)
        except httpx.HTTPError as e:
            log.error("telegram.request_error", method=method, error=str(e))
            return None

    async def _call(self, method: str, payload: dict[str, Any], *, log_body: bool = False) -> bool:
        resp = await self._post(method, payload)
        if resp is None:
            return False
        if not resp.is_success:
            if log_body:
                log.error(f"telegram.{method}_failed", status=resp.status_code, body=resp.text[:500])
            else:
                log.warning(f"telegram.{method}_failed", status=resp.status_code)
            return False
        return True

    # ── Messages ─────────────────────────────────────────────────

    async def send_message(
        self,
        chat_id: str,
        text: str,
        parse_mode: str = "HTML",
        reply_markup: InlineKeyboard | None = None,
    ) -> bool:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": parse_mode,
            "disable_web_page_preview": True,
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return await self._call("sendMessage", payload, log_body=True)

    async def send_photo(
        self,
        chat_id: str,
        photo_url: str,
        caption: str | None = None,
        parse_mode: str = "HTML",
        reply_markup: InlineKeyboard | None = None,
    ) -> bool:
        """Send a photo; ``parse_mode`` only applies when there is a caption."""
        payload: dict[str, Any] = {"chat_id": chat_id, "photo": photo_url}
        if caption:
            payload["caption"] = caption
            payload["parse_mode"] = parse_mode
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return await self._call("sendPhoto", payload, log_body=True)

    async def edit_message_text(
        self,
        chat_id: str,
        message_id: int,
        text: str,
        parse_mode: str = "HTML",
        reply_markup: InlineKeyboard | None = None,
    ) -> bool:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
            "parse_mode": parse_mode,
            "disable_web_page_preview": True,
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return await self._call("editMessageText", payload)

    async def edit_message_caption(
        self,
        chat_id: str,
        message_id: int,
        caption: str,
        parse_mode: str = "HTML",
        reply_markup: InlineKeyboard | None = None,
    ) -> bool:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "message_id": message_id,
            "caption": caption,
            "parse_mode": parse_mode,
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return await self._call("editMessageCaption", payload)

    async def smart_edit_message(
        self,
        chat_id: str,
        message_id: int,
        text: str,
        parse_mode: str = "HTML",
        reply_markup: InlineKeyboard | None = None,
    ) -> bool:
        """Edit a message whether it is a text or a photo message.

        Photo messages reject editMessageText, so a failed text edit is
        retried once as a caption edit.
        """
        if await self.edit_message_text(chat_id, message_id, text, parse_mode, reply_markup):
            return True
        return await self.edit_message_caption(chat_id, message_id, text, parse_mode, reply_markup)

    async def answer_callback_query(
        self,
        callback_query_id: str,
        text: str | None = None,
        show_alert: bool = False,
    ) -> bool:
        payload: dict[str, Any] = {
            "callback_query_id": callback_query_id,
            "show_alert": show_alert,
        }
        if text is not None:
            payload["text"] = text
        return await self._call("answerCallbackQuery", payload)

    # ── Webhook ──────────────────────────────────────────────────

    async def set_webhook(
        self,
        url: str,
        allowed_updates: list[str] | None = None,
        drop_pending_updates: bool | None = None,
    ) -> dict[str, Any]:
        """Register the webhook and return Telegram's decoded reply."""
        payload: dict[str, Any] = {"url": url}
        if allowed_updates is not None:
            payload["allowed_updates"] = allowed_updates
        if drop_pending_updates is not None:
            payload["drop_pending_updates"] = drop_pending_updates
        return await self._json_call("setWebhook", payload)

    async def delete_webhook(self) -> dict[str, Any]:
        return await self._json_call("deleteWebhook")

    async def get_webhook_info(self) -> dict[str, Any]:
        return await self._json_call("getWebhookInfo")

    async def _json_call(self, method: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        resp = await self._post(method, payload)
        if resp is None:
            return {"ok": False, "description": "request failed"}
        try:
            data = resp.json()
        except ValueError:
            log.error(f"telegram.{method}_bad_json", status=resp.status_code)
            return {"ok": False, "description": f"HTTP {resp.status_code}"}
        if not data.get("ok", False):
            log.warning(f"telegram.{method}_failed", description=data.get("description", ""))
        return data


# ── Keyboards ────────────────────────────────────────────────────────

def create_trade_inline_keyboard(slug: str | None) -> InlineKeyboard | None:
    """Buttons shown under a trade alert; none without a market slug."""
    if not slug:
        return None
    return {
        "inline_keyboard": [
            [
                {"text": "📊 Copytrade", "url": f"{POLYMARKET_EVENT_URL}{slug}"},
                {"text": "🤖 Copytrade AI (Soon)", "callback_data": "copytrade_ai_soon"},
            ],
        ],
    }


def main_menu_keyboard() -> InlineKeyboard:
    return {
        "inline_keyboard": [
            [
                {"text": "👛 Wallet", "callback_data": "menu_wallet"},
                {"text": "👤 Profile", "callback_data": "menu_profile"},
            ],
            [
                {"text": "📈 Positions", "callback_data": "menu_positions"},
                {"text": "🤖 Copy Trade", "callback_data": "menu_copytrade"},
            ],
            [
                {"text": "🎁 Referral", "callback_data": "menu_referral"},
            ],
        ],
    }


def wallet_menu_keyboard(has_wallet: bool, back_to: str = "menu_main") -> InlineKeyboard:
    """Wallet submenu; ``back_to`` is the callback the Back button returns to."""
    if not has_wallet:
        return {
            "inline_keyboard": [
                [{"text": "+ Create a wallet", "callback_data": "wallet_create"}],
                [{"text": "Import", "callback_data": "wallet_import"}],
                [{"text": "Back", "callback_data": back_to}],
            ],
        }
    return {
        "inline_keyboard": [
            [
                {"text": "💸 Withdraw", "callback_data": "wallet_withdraw"},
                {"text": "➕ Deposit", "callback_data": "wallet_deposit"},
            ],
            [
                {"text": "📤 Export", "callback_data": "wallet_export"},
                {"text": "🔄 Refresh", "callback_data": "wallet_refresh"},
            ],
            [
                {"text": "⬅️ Back", "callback_data": "menu_main"},
            ],
        ],
    }


# ── Formatting ───────────────────────────────────────────────────────

@dataclass
class TradeNotice:
    """The fields a trade alert shows."""
    wallet_address: str
    market: str
    outcome: str
    side: str
    size: float
    price: float
    trader_name: str = ""
    slug: str = ""
    image_url: str = ""
    transaction_hash: str = ""

    @classmethod
    def from_trade(cls, trade: TraderTrade) -> TradeNotice:
        return cls(
            wallet_address=trade.proxy_wallet,
            market=trade.title,
            outcome=trade.outcome,
            side=trade.side,
            size=trade.size,
            price=trade.price,
            trader_name=trade.trader_name,
            slug=trade.event_slug or trade.slug,
            image_url=trade.icon,
            transaction_hash=trade.transaction_hash,
        )


def _esc(text: str) -> str:
    return html.escape(text or "", quote=False)


def _attr(text: str) -> str:
    """Escape for use inside an attribute value."""
    return html.escape(text or "", quote=True)


def _short_wallet(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}"


def _format_shares(size: float) -> str:
    """Thousands separators, up to three decimals, no trailing zeros."""
    text = f"{size:,.3f}".rstrip("0").rstrip(".")
    return text or "0"


def format_trade_notification(notice: TradeNotice, brand_line: str = DEFAULT_BRAND_LINE) -> str:
    """HTML body of a trade alert."""
    display_name = notice.trader_name or _short_wallet(notice.wallet_address)
    value = round(notice.size * notice.price, 2)
    formatted_value = f"${value / 1000:.1f}K" if value >= 1000 else f"${value:.2f}"
    price_cents = f"{notice.price * 100:.0f}"
    action = "BUY" if (notice.side or "").upper() == "BUY" else "SELL"

    market = _esc(notice.market)
    if notice.slug:
        market = f'<a href="{POLYMARKET_EVENT_URL}{_attr(notice.slug)}">{market}</a>'

    lines = [
        f'<b>{action}</b> — "{_esc(notice.outcome)}"',
        "",
        f"Smart Wallet: <b>{_esc(display_name)}</b> (<code>{_attr(notice.wallet_address)}</code>)",
        f'Market: "{market}"',
        "",
        f"• Capital Deployed: <b>{formatted_value}</b>",
        f"• Entry: <b>{price_cents}c</b>",
        f"• Size: <b>{_format_shares(notice.size)}</b> shares",
        "",
        f"<i>{_esc(brand_line)}</i>",
    ]
    return "\n".join(lines)


def generate_linking_code(length: int = 8) -> str:
    """Random code a user sends to the bot to link their chat."""
    return "".join(secrets.choice(LINKING_CODE_ALPHABET) for _ in range(length))
