"""Client-side dashboard loading.

Order of work:
1) One /trades request (open trades, first history page, singletons). If it
   fails the whole load fails; there is no partial dashboard.
2) One /datapoints request per open trade, all in flight at once. Each is
   best-effort: a failure or timeout is logged, the trade keeps zero P/L, and
   the others carry on. Totals are recomputed as each price lands.
"""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Tuple

from platypus_dashboard.infrastructure.dashboard.dashboard_client import (
    DashboardClient,
    DashboardFetchError,
)
from platypus_dashboard.infrastructure.logging.logging import get_logger
from platypus_dashboard.models.trade_models import HistoricalTrade, TradeDatapoint, TradeStatus
from platypus_dashboard.services.monitoring.snapshot import DashboardSnapshot
from platypus_dashboard.services.pagination.paginator import DEFAULT_PAGE_SIZE, SUMMARY_PAGE_SIZE
from platypus_dashboard.services.pnl.aggregator import DEFAULT_TIMEZONE, PortfolioSummary

PriceResult = Tuple[str, List[TradeDatapoint], Optional[str]]


class DashboardLoader:
    def __init__(
        self,
        client: DashboardClient,
        *,
        page_size: int = SUMMARY_PAGE_SIZE,
        timezone: str = DEFAULT_TIMEZONE,
        on_update: Optional[Callable[[PortfolioSummary], None]] = None,
    ) -> None:
        self._client = client
        self._page_size = page_size
        self._timezone = timezone
        self._on_update = on_update
        self._log = get_logger("dashboard_loader")

    async def load(self) -> DashboardSnapshot:
        page = await self._client.fetch_trades(page=1, limit=self._page_size)
        snapshot = DashboardSnapshot(
            open_trades=page.open_trades,
            historical_trades=page.historical_trades,
            system_config=page.system_config,
            long_term_performance=page.long_term_performance,
            has_more_history=page.has_more,
            timezone=self._timezone,
        )
        self._log.info(
            "trades_loaded",
            open_trades=len(page.open_trades),
            historical_trades=len(page.historical_trades),
        )
        await self.refresh_prices(snapshot)
        return snapshot

    async def _fetch_price(self, trade_id: str) -> PriceResult:
        try:
            points = await self._client.fetch_datapoints(trade_id)
        except DashboardFetchError as e:
            self._log.warning("price_fetch_failed", trade_id=trade_id, error=str(e))
            return trade_id, [], str(e)
        return trade_id, points, None

    async def refresh_prices(self, snapshot: DashboardSnapshot) -> None:
        """Fetch the latest datapoint of every open trade concurrently."""
        tasks = [asyncio.create_task(self._fetch_price(t.trade_id)) for t in snapshot.open_trades]
        try:
            for next_done in asyncio.as_completed(tasks):
                trade_id, points, error = await next_done
                if error is not None:
                    snapshot.price_errors[trade_id] = error
                    continue
                snapshot.price_errors.pop(trade_id, None)
                if snapshot.price_book.observe_datapoints(trade_id, points) and self._on_update:
                    self._on_update(snapshot.summary())
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

    async def load_trade_detail(self, snapshot: DashboardSnapshot, trade_id: str) -> List[TradeDatapoint]:
        """Price history for one selected trade; also refreshes its price if still open."""
        points = await self._client.fetch_datapoints(trade_id)
        is_open = any(t.trade_id == trade_id and t.status is TradeStatus.OPEN for t in snapshot.open_trades)
        if is_open:
            snapshot.price_book.observe_datapoints(trade_id, points)
        return points


class HistoryPager:
    """Walks the history pages, appending each one, until a short page comes back."""

    def __init__(self, client: DashboardClient, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._client = client
        self.page_size = page_size
        self.next_page = 1
        self.has_more = True
        self.records: List[HistoricalTrade] = []

    async def load_next(self) -> List[HistoricalTrade]:
        if not self.has_more:
            return []
        page = await self._client.fetch_trades(page=self.next_page, limit=self.page_size)
        self.records.extend(page.historical_trades)
        self.has_more = page.has_more
        self.next_page += 1
        return page.historical_trades

    async def load_all(self, max_pages: Optional[int] = None) -> List[HistoricalTrade]:
        loaded = 0
        while self.has_more and (max_pages is None or loaded < max_pages):
            await self.load_next()
            loaded += 1
        return self.records
