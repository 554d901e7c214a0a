#!/usr/bin/env python3
"""Diagnose the bot's webhook.

Prints the current webhook info, reports the last delivery error Telegram
recorded, then sends a GET to the registered URL to check it is reachable.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import json
import os
import sys
from typing import Any

import httpx
from dotenv import load_dotenv

from vantake.config import load_config
from vantake.notifications.telegram import TelegramClient


def probe(url: str, timeout: float = 15.0) -> None:
    """GET the webhook URL ourselves and print what comes back."""
    try:
        resp = httpx.get(url, timeout=timeout)
    except httpx.HTTPError as e:
        print(f"GET test FAILED: {e}")
        return
    print(f"GET test status: {resp.status_code} {resp.reason_phrase}")
    print(f"GET test body: {resp.text[:200]}")


def report(info: dict[str, Any]) -> None:
    print("Current webhook info:")
    print(json.dumps(info, indent=2))

    result = info.get("result") or {}
    if result.get("last_error_message"):
        print("\n--- PROBLEM DETECTED ---")
        print("Last error:", result["last_error_message"])
        last_date = result.get("last_error_date")
        if last_date:
            when = dt.datetime.fromtimestamp(last_date, tz=dt.timezone.utc)
            print("Last error date:", when.isoformat())

    if result.get("url"):
        print("\nWebhook URL:", result["url"])
        probe(result["url"])


async def check() -> None:
    client = TelegramClient(load_config().telegram)
    try:
        info = await client.get_webhook_info()
    finally:
        await client.close()
    report(info)


def main() -> None:
    load_dotenv()
    if not os.environ.get("TELEGRAM_BOT_TOKEN"):
        print("TELEGRAM_BOT_TOKEN is not set", file=sys.stderr)
        sys.exit(1)
    asyncio.run(check())


if __name__ == "__main__":
    main()
