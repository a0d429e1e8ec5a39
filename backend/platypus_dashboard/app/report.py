"""
Text dashboard printed from a running API.

Usage:
  python -m platypus_dashboard.app.report [--history-pages 1] [--long-positions]

Loads trades the same way the web dashboard does (trades page first, then one
best-effort price lookup per open trade) and prints the aggregated P/L.
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Optional

from platypus_dashboard.infrastructure.dashboard.dashboard_client import DashboardClient, DashboardFetchError
from platypus_dashboard.infrastructure.logging.logging import configure_logging, get_logger
from platypus_dashboard.infrastructure.utils.config import DashboardConfig, load_config
from platypus_dashboard.services.monitoring.dashboard_loader import DashboardLoader, HistoryPager
from platypus_dashboard.services.monitoring.snapshot import DashboardSnapshot
from platypus_dashboard.services.pnl.formatting import (
    format_currency,
    format_percent,
    format_signed_currency,
    format_timestamp,
)
from platypus_dashboard.services.pnl.long_positions import LongBookSummary, summarize_long_positions

log = get_logger("report")


def render_snapshot(snapshot: DashboardSnapshot) -> str:
    summary = snapshot.summary()
    tz = snapshot.timezone
    lines = ["=" * 60, "PLATYPUS DASHBOARD", "=" * 60]

    if snapshot.system_config is not None:
        cfg = snapshot.system_config
        lines.append(f"  Status:           {cfg.status.upper()}")
        lines.append(f"  Last updated:     {format_timestamp(cfg.last_updated, tz)}")

    lines.append(f"  Portfolio value:  {format_currency(summary.portfolio_value)}")
    lines.append(f"  Open P/L:         {format_signed_currency(summary.total_open_pl)}")
    lines.append(f"  Realized today:   {format_signed_currency(summary.today_realized_pl)}")
    lines.append(f"  Priced trades:    {summary.priced_open_trades}/{len(summary.open_rows)}")

    perf = snapshot.long_term_performance
    if perf is not None:
        lines.append("-" * 60)
        lines.append(f"  Total trades:     {perf.total_trades}")
        lines.append(f"  Win rate:         {perf.win_rate:.2f}%")
        lines.append(f"  Avg entry price:  {format_currency(perf.average_entry_price)}")
        lines.append(
            f"  Total P/L:        {format_currency(perf.total_pnl_dollars)} "
            f"({format_percent(perf.total_pnl_percent, signed=False)})"
        )

    if snapshot.open_trades:
        lines.append("-" * 60)
        lines.append("Open trades:")
        for trade, row in zip(snapshot.open_trades, summary.open_rows):
            price = format_currency(row.current_value) if row.has_price else "no data"
            lines.append(
                f"  {trade.ticker:<8} {trade.quantity:g} @ {format_currency(trade.purchase_price)} "
                f"now {price} -> {format_signed_currency(row.profit_loss_dollars)} "
                f"({format_percent(row.profit_loss_percent)})"
            )

    if snapshot.historical_trades:
        lines.append("-" * 60)
        lines.append("Closed trades:")
        for trade, row in zip(snapshot.historical_trades, summary.historical_rows):
            lines.append(
                f"  {format_timestamp(trade.closed_time, tz)} {trade.ticker:<8} "
                f"{format_currency(trade.purchase_price)} -> {format_currency(trade.sold_price)} "
                f"{format_signed_currency(row.profit_loss_dollars)} ({format_percent(row.profit_loss_percent)})"
            )

    lines.append("=" * 60)
    return "\n".join(lines)


def render_long_book(book: LongBookSummary) -> str:
    lines = ["Long positions:"]
    if not book.rows:
        lines.append("  No long positions found.")
    for row in book.rows:
        lines.append(
            f"  {row.symbol:<8} {format_signed_currency(row.profit_loss_dollars)} "
            f"({format_percent(row.percent_change)})"
        )
    lines.append(f"  Total equity:     {format_currency(book.total_value)}")
    lines.append(f"  Total return:     {format_signed_currency(book.total_pl)} ({format_percent(book.total_pl_percent)})")
    return "\n".join(lines)


async def run_report(
    config: DashboardConfig,
    *,
    history_pages: int = 1,
    include_long_positions: bool = False,
) -> int:
    async with DashboardClient(config.client.base_url, timeout_sec=config.client.timeout_seconds) as client:
        loader = DashboardLoader(
            client,
            page_size=config.pagination.summary_page_size,
            timezone=config.reporting.timezone,
        )
        try:
            snapshot = await loader.load()
            if history_pages > 1:
                pager = HistoryPager(client, page_size=config.pagination.default_page_size)
                snapshot.historical_trades = await pager.load_all(max_pages=history_pages)
                snapshot.has_more_history = pager.has_more
            book = None
            if include_long_positions:
                positions = await client.fetch_long_positions()
                book = summarize_long_positions(
                    positions,
                    weight_cost_basis_by_quantity=config.reporting.weight_cost_basis_by_quantity,
                )
        except DashboardFetchError as e:
            log.error("report_load_failed", error=str(e))
            print(f"Error: failed to load dashboard ({e})")
            return 1

    print(render_snapshot(snapshot))
    if book is not None:
        print(render_long_book(book))
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser("platypus-report")
    parser.add_argument("--config", type=Path, default=None, help="Path to YAML config")
    parser.add_argument("--history-pages", type=int, default=1, help="History pages to walk")
    parser.add_argument("--long-positions", action="store_true", help="Also print the long book")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(config.log_level)
    return asyncio.run(
        run_report(config, history_pages=args.history_pages, include_long_positions=args.long_positions)
    )


if __name__ == "__main__":
    raise SystemExit(main())
