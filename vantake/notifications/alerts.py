"""Trade alert fan-out to linked Telegram chats.

A tracked wallet's trade produces one ``TradeNotice``; the dispatcher
formats it once and delivers it to every chat linked to that wallet.

  - Photo alert when the market has an image, plain text otherwise
  - Copytrade keyboard attached when the market slug is known
  - Per-(chat, trade) cooldown so a re-polled trade is not sent twice
  - Each chat is independent: one failure never blocks the others
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Iterable

from vantake.notifications.telegram import (
    DEFAULT_BRAND_LINE,
    TelegramClient,
    TradeNotice,
    create_trade_inline_keyboard,
    format_trade_notification,
)
from vantake.observability.logger import get_logger

log = get_logger(__name__)

_HISTORY_MAX = 500


@dataclass
class DispatchResult:
    """Outcome of one alert fan-out."""
    notice: TradeNotice
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)

    @property
    def all_delivered(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet_address": self.notice.wallet_address,
            "market": self.notice.market,
            "side": self.notice.side,
            "sent": self.sent,
            "failed": self.failed,
            "skipped": self.skipped,
            "timestamp": self.timestamp,
        }


class TradeAlertDispatcher:
    """Send trade alerts to every chat linked to a wallet."""

    def __init__(
        self,
        client: TelegramClient,
        cooldown_secs: float = 300,
        brand_line: str = DEFAULT_BRAND_LINE,
    ):
        self._client = client
        self._cooldown_secs = cooldown_secs
        self._brand_line = brand_line
        self._cooldowns: dict[str, float] = {}
        self._history: list[DispatchResult] = []

    def _cooldown_key(self, chat_id: str, notice: TradeNotice) -> str:
        trade_id = notice.transaction_hash or (
            f"{notice.wallet_address}|{notice.slug}|{notice.side}|{notice.size}|{notice.price}"
        )
        return f"{chat_id}|{trade_id}"

    def _in_cooldown(self, key: str, now: float) -> bool:
        last_sent = self._cooldowns.get(key)
        return last_sent is not None and now - last_sent < self._cooldown_secs

    def _prune_cooldowns(self, now: float) -> None:
        """Drop cooldown entries whose window has passed."""
        expired = [k for k, ts in self._cooldowns.items() if now - ts >= self._cooldown_secs]
        for k in expired:
            del self._cooldowns[k]

    async def dispatch(self, notice: TradeNotice, chat_ids: Iterable[str]) -> DispatchResult:
        result = DispatchResult(notice=notice)
        self._prune_cooldowns(time.time())
        text = format_trade_notification(notice, brand_line=self._brand_line)
        keyboard = create_trade_inline_keyboard(notice.slug)

        for chat_id in chat_ids:
            now = time.time()
            key = self._cooldown_key(chat_id, notice)
            if self._in_cooldown(key, now):
                log.debug("alerts.cooldown", chat_id=chat_id)
                result.skipped.append(chat_id)
                continue

            if notice.image_url:
                ok = await self._client.send_photo(
                    chat_id, notice.image_url, caption=text, reply_markup=keyboard,
                )
            else:
                ok = await self._client.send_message(chat_id, text, reply_markup=keyboard)

            if ok:
                self._cooldowns[key] = now
                result.sent.append(chat_id)
            else:
                result.failed.append(chat_id)

        log.info(
            "alerts.dispatched",
            wallet=notice.wallet_address[:10],
            sent=len(result.sent),
            failed=len(result.failed),
            skipped=len(result.skipped),
        )

        self._history.append(result)
        if len(self._history) > _HISTORY_MAX:
            self._history = self._history[-(_HISTORY_MAX // 2):]
        return result

    def get_history(self, limit: int = 50) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self._history[-limit:]]
