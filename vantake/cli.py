"""CLI entry point for Vantake analytics.

Commands:
  vantake proficiency --wallet   — Category proficiency table for a trader
  vantake link-code              — Generate a Telegram linking code
  vantake notify-test --chat     — Send a sample trade alert to a chat
  vantake dashboard              — Launch the dashboard API server
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from vantake.config import AppConfig, load_config
from vantake.observability.logger import configure_logging, get_logger

load_dotenv()

console = Console()
log = get_logger(__name__)


def _run(coro: Any) -> Any:
    """Run an async coroutine from sync CLI."""
    return asyncio.run(coro)


@click.group()
@click.option("--config", "config_path", default=None, help="Path to config.yaml")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """Vantake — prediction-market trader analytics."""
    ctx.ensure_object(dict)
    cfg = load_config(config_path)
    ctx.obj["config"] = cfg
    ctx.obj["config_path"] = config_path
    configure_logging(
        level=cfg.observability.log_level,
        fmt="console",  # CLI always uses console format
        log_file=cfg.observability.log_file or None,
    )


# ─── PROFICIENCY ─────────────────────────────────────────────────

@cli.command()
@click.option("--wallet", "address", required=True, help="Trader wallet address")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON instead of a table")
@click.pass_context
def proficiency(ctx: click.Context, address: str, as_json: bool) -> None:
    """Score a trader's performance per market category."""
    cfg: AppConfig = ctx.obj["config"]

    async def _fetch() -> tuple[list, list]:
        from vantake.connectors.polymarket_data import DataAPIClient

        client = DataAPIClient(cfg.data_api.base_url, timeout_secs=cfg.data_api.timeout_secs)
        try:
            positions = await client.get_positions(address, limit=cfg.data_api.page_limit)
            trades = await client.get_trades(address, limit=cfg.data_api.page_limit)
        finally:
            await client.close()
        return positions, trades

    import httpx
    from tenacity import RetryError

    from vantake.analytics.category_scoring import compute_category_proficiency
    from vantake.analytics.presentation import format_usd, has_activity
    from vantake.connectors.polymarket_data import build_profile

    try:
        positions, trades = _run(_fetch())
    except (httpx.HTTPError, RetryError) as e:
        log.error("cli.data_api_error", address=address[:10], error=str(e))
        console.print(f"[red]Data API unavailable: {e}[/red]")
        sys.exit(1)
    profile = build_profile(address, positions, trades)
    result = compute_category_proficiency(
        positions, trades, profile, cfg.categories.slug_map,
    )

    if as_json:
        console.print_json(data=result.to_dict())
        return

    if result.is_empty:
        console.print(f"[yellow]No trading history found for {address}.[/yellow]")
        return

    table = Table(title=f"🎯 Category Proficiency — {profile.name or address[:10]}")
    table.add_column("Category", style="bold")
    table.add_column("Smart Score", justify="right", style="green")
    table.add_column("Risk Eff.", justify="right")
    table.add_column("Profitability", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("Win Rate", justify="right")
    table.add_column("Volume", justify="right")
    table.add_column("Sharpe", justify="right")
    table.add_column("Sortino", justify="right")
    table.add_column("Trades", justify="right", style="dim")

    for s in result.stats:
        style = None if has_activity(s) else "dim"
        pnl_text = format_usd(s.pnl)
        table.add_row(
            f"{s.emoji} {s.name}",
            f"{s.smart_score:.2f}",
            f"{s.risk_efficiency:.2f}",
            f"{s.profitability:.2f}",
            f"[green]{pnl_text}[/green]" if s.pnl >= 0 else f"[red]{pnl_text}[/red]",
            f"{s.win_rate:.1f}%",
            format_usd(s.volume),
            f"{s.sharpe:.2f}",
            f"{s.sortino:.2f}",
            str(s.trades),
            style=style,
        )

    console.print(table)


# ─── TELEGRAM ────────────────────────────────────────────────────

@cli.command("link-code")
def link_code() -> None:
    """Generate a one-off code for linking a Telegram chat."""
    from vantake.notifications.telegram import generate_linking_code

    console.print(f"[bold cyan]{generate_linking_code()}[/bold cyan]")


@cli.command("notify-test")
@click.option("--chat", "chat_id", required=True, help="Telegram chat id")
@click.pass_context
def notify_test(ctx: click.Context, chat_id: str) -> None:
    """Send a sample trade alert to a Telegram chat."""
    cfg: AppConfig = ctx.obj["config"]

    async def _send() -> Any:
        from vantake.notifications.alerts import TradeAlertDispatcher
        from vantake.notifications.telegram import TelegramClient, TradeNotice

        client = TelegramClient(cfg.telegram)
        dispatcher = TradeAlertDispatcher(
            client,
            cooldown_secs=cfg.telegram.alert_cooldown_secs,
            brand_line=cfg.telegram.brand_line,
        )
        notice = TradeNotice(
            wallet_address="0x0000000000000000000000000000000000000000",
            trader_name="Sample Trader",
            market="Will Bitcoin reach $150K by December 31?",
            outcome="Yes",
            side="BUY",
            size=2500,
            price=0.42,
            slug="bitcoin-above-150k-on-december-31",
        )
        try:
            return await dispatcher.dispatch(notice, [chat_id])
        finally:
            await client.close()

    from vantake.notifications.telegram import TelegramConfigError

    try:
        result = _run(_send())
    except TelegramConfigError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if result.all_delivered:
        console.print(f"[green]✅ Alert sent to {chat_id}[/green]")
    else:
        console.print(f"[red]❌ Telegram rejected the alert for {chat_id}[/red]")
        sys.exit(1)


# ─── DASHBOARD ───────────────────────────────────────────────────

@cli.command()
@click.option("--host", default=None, help="Bind host")
@click.option("--port", default=None, type=int, help="Bind port")
@click.option("--debug", is_flag=True, help="Flask debug mode")
@click.pass_context
def dashboard(ctx: click.Context, host: str | None, port: int | None, debug: bool) -> None:
    """Launch the dashboard API server."""
    from vantake.dashboard.app import run_dashboard

    run_dashboard(ctx.obj["config_path"], host=host, port=port, debug=debug)


if __name__ == "__main__":
    cli()
