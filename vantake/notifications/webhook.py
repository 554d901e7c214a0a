"""Inbound Telegram webhook update routing.

Handles the two kinds of update the bot reacts to:
  - messages: ``/start`` and ``/menu`` reply with the main menu
  - callback queries from inline buttons: menu navigation edits the
    message in place, the "Copytrade AI (Soon)" button gets a toast
"""

from __future__ import annotations

from typing import Any

from vantake.notifications.telegram import (
    TelegramClient,
    main_menu_keyboard,
    wallet_menu_keyboard,
)
from vantake.observability.logger import get_logger

log = get_logger(__name__)

MAIN_MENU_TEXT = "<b>Vantake</b>\n\nTrack smart wallets and get their trades in real time."
WALLET_MENU_TEXT = "<b>👛 Wallet</b>\n\nNo wallet connected yet."
COMING_SOON_TEXT = "Coming soon!"

_MENU_COMMANDS = frozenset({"/start", "/menu"})


async def handle_update(client: TelegramClient, update: dict[str, Any]) -> dict[str, Any]:
    """Route one webhook update.  Returns a summary of what was done."""
    if "callback_query" in update:
        return await _handle_callback(client, update["callback_query"])
    message = update.get("message") or {}
    if message:
        return await _handle_message(client, message)
    return {"action": "ignored"}


async def _handle_message(client: TelegramClient, message: dict[str, Any]) -> dict[str, Any]:
    chat_id = str((message.get("chat") or {}).get("id", ""))
    text = (message.get("text") or "").strip()
    command = text.split()[0].split("@")[0].lower() if text else ""

    if not chat_id or command not in _MENU_COMMANDS:
        return {"action": "ignored"}

    ok = await client.send_message(chat_id, MAIN_MENU_TEXT, reply_markup=main_menu_keyboard())
    log.info("webhook.menu_sent", chat_id=chat_id, ok=ok)
    return {"action": "main_menu", "ok": ok}


async def _handle_callback(client: TelegramClient, query: dict[str, Any]) -> dict[str, Any]:
    query_id = str(query.get("id", ""))
    data = query.get("data", "")
    message = query.get("message") or {}
    chat_id = str((message.get("chat") or {}).get("id", ""))
    message_id = message.get("message_id")

    if data == "copytrade_ai_soon":
        ok = await client.answer_callback_query(query_id, COMING_SOON_TEXT)
        return {"action": "coming_soon", "ok": ok}

    screens = {
        "menu_main": (MAIN_MENU_TEXT, main_menu_keyboard()),
        "menu_wallet": (WALLET_MENU_TEXT, wallet_menu_keyboard(has_wallet=False)),
    }
    if data in screens and chat_id and message_id is not None:
        text, keyboard = screens[data]
        await client.answer_callback_query(query_id)
        ok = await client.smart_edit_message(chat_id, int(message_id), text, reply_markup=keyboard)
        return {"action": data, "ok": ok}

    log.debug("webhook.unhandled_callback", data=data)
    ok = await client.answer_callback_query(query_id)
    return {"action": "acknowledged", "ok": ok}
