"""Optional Sentry error tracking for the web app.

Active only when SENTRY_DSN is set and sentry-sdk is installed
(``pip install vantake[sentry]``).  Events pass through ``scrub_event``
so a bot token never leaves the process, whether it sits in ``extra``,
the request URL or an exception message.
"""

from __future__ import annotations

import os
from typing import Any

from vantake.observability.logger import REDACTED, get_logger, scrub_text

log = get_logger(__name__)

_SENSITIVE_KEY_PARTS = ("token", "secret", "password", "api_key", "dsn")
_BOT_URL_MARKER = "api.telegram.org/bot"


def init_sentry() -> bool:
    """Initialise Sentry if SENTRY_DSN is configured. Returns True if active."""
    dsn = os.environ.get("SENTRY_DSN", "")
    if not dsn:
        return False

    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
    except ImportError:
        log.warning("sentry.not_installed", msg="pip install vantake[sentry]")
        return False

    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
        environment=os.environ.get("ENVIRONMENT", "production"),
        before_send=scrub_event,
    )
    log.info("sentry.initialised")
    return True


def _mask_bot_url(url: str) -> str:
    if _BOT_URL_MARKER not in url:
        return url
    prefix, _, rest = url.partition("/bot")
    return f"{prefix}/bot{REDACTED}/{rest.partition('/')[2]}"


def scrub_event(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any]:
    extra = event.get("extra") or {}
    for key in list(extra):
        if any(part in key.lower() for part in _SENSITIVE_KEY_PARTS):
            extra[key] = REDACTED

    request = event.get("request") or {}
    if request.get("url"):
        request["url"] = _mask_bot_url(request["url"])

    for exc in (event.get("exception") or {}).get("values", []):
        if isinstance(exc.get("value"), str):
            exc["value"] = scrub_text(exc["value"])
    return event
