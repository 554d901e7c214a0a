"""Structured logging with structlog.

Two layers keep Telegram credentials out of the log stream:
  - event keys that name a secret (``bot_token``, ``api_key`` ...) are masked
  - any string value containing something shaped like a bot token is
    rewritten, which covers httpx error messages that embed the full
    ``api.telegram.org/bot<token>/...`` request URL
"""

from __future__ import annotations

import logging
import os
import re
import sys
from pathlib import Path

import structlog


REDACTED = "***REDACTED***"

_SECRET_KEYS = frozenset({
    "token", "bot_token", "telegram_bot_token",
    "secret", "password", "api_key", "sentry_dsn",
})

# <bot id>:<35-char secret>
_BOT_TOKEN_RE = re.compile(r"\d{6,}:[A-Za-z0-9_-]{30,}")

_configured = False


def scrub_text(text: str) -> str:
    """Replace bot tokens inside free text."""
    return _BOT_TOKEN_RE.sub(REDACTED, text)


def _redact_processor(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    for key, value in list(event_dict.items()):
        if key.lower() in _SECRET_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(value, str):
            event_dict[key] = scrub_text(value)
    return event_dict


def _handlers(log_file: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(path)))
    return handlers


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    level: str = "INFO",
    fmt: str = "json",
    log_file: str | None = None,
) -> None:
    """Route structlog through the stdlib root logger.  Only the first call
    has any effect."""
    global _configured
    if _configured:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_processor,
    ]
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=_renderer(fmt),
        foreign_pre_chain=pre_chain,
    )

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in _handlers(log_file):
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    # httpx logs every request URL at INFO, bot token included
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog bound logger, configuring from env on first use."""
    if not _configured:
        configure_logging(
            level=os.environ.get("LOG_LEVEL", "INFO"),
            fmt=os.environ.get("LOG_FORMAT", "console"),
        )
    return structlog.get_logger(name)
