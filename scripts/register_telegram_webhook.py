#!/usr/bin/env python3
"""Register the bot's webhook with the Telegram Bot API.

Reads TELEGRAM_BOT_TOKEN (and optionally TELEGRAM_WEBHOOK_URL) from the
environment or .env, points the webhook at the dashboard endpoint and
prints Telegram's reply plus the resulting webhook info.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys

from dotenv import load_dotenv

from vantake.config import load_config
from vantake.notifications.telegram import TelegramClient


async def register() -> None:
    cfg = load_config().telegram
    client = TelegramClient(cfg)
    try:
        print(f"Setting webhook to: {cfg.webhook_url}")
        data = await client.set_webhook(
            cfg.webhook_url,
            allowed_updates=["message", "callback_query"],
            drop_pending_updates=True,
        )
        print("Response:", json.dumps(data, indent=2))

        info = await client.get_webhook_info()
        print("Webhook info:", json.dumps(info, indent=2))
    finally:
        await client.close()


def main() -> None:
    load_dotenv()
    if not os.environ.get("TELEGRAM_BOT_TOKEN"):
        print("TELEGRAM_BOT_TOKEN is not set", file=sys.stderr)
        sys.exit(1)
    asyncio.run(register())


if __name__ == "__main__":
    main()
