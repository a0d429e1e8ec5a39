"""Profit/loss arithmetic for single trades and for the whole book.

Open trades are valued from the latest observed price (PriceBook); closed
trades are always valued at their sold price.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from platypus_dashboard.infrastructure.utils.timeutils import civil_date, ensure_utc, utc_now
from platypus_dashboard.models.trade_models import (
    HistoricalTrade,
    OpenTrade,
    Trade,
    TradeDatapoint,
    TradeStatus,
)

DEFAULT_TIMEZONE = "America/Chicago"


def current_value(trade: Trade, latest_price: Optional[float] = None) -> float:
    if trade.status is TradeStatus.CLOSED:
        return trade.sold_price
    if latest_price is not None:
        return float(latest_price)
    return trade.purchase_price


def profit_loss_dollars(trade: Trade, value: float) -> float:
    return (value - trade.purchase_price) * trade.quantity


def profit_loss_percent(trade: Trade, value: float) -> float:
    """Percent change vs. entry. A zero purchase price gives inf/-inf/nan, not an error."""
    diff = value - trade.purchase_price
    if trade.purchase_price == 0:
        if diff == 0:
            return math.nan
        return math.copysign(math.inf, diff)
    return diff / trade.purchase_price * 100


def is_profit(pl_dollars: float) -> bool:
    return pl_dollars >= 0


@dataclass(frozen=True)
class TradePnL:
    trade_id: str
    status: TradeStatus
    current_value: float
    profit_loss_dollars: float
    profit_loss_percent: float
    is_profit: bool
    has_price: bool


def trade_pnl(trade: Trade, latest_price: Optional[float] = None) -> TradePnL:
    value = current_value(trade, latest_price)
    dollars = profit_loss_dollars(trade, value)
    return TradePnL(
        trade_id=trade.trade_id,
        status=trade.status,
        current_value=value,
        profit_loss_dollars=dollars,
        profit_loss_percent=profit_loss_percent(trade, value),
        is_profit=is_profit(dollars),
        has_price=trade.status is TradeStatus.CLOSED or latest_price is not None,
    )


class PriceBook:
    """Latest observed price per trade_id.

    Fed by discrete observations that may arrive in any order; an observation
    older than the one already held is ignored.
    """

    def __init__(self) -> None:
        self._prices: Dict[str, Tuple[float, Optional[datetime]]] = {}

    def __len__(self) -> int:
        return len(self._prices)

    def __contains__(self, trade_id: object) -> bool:
        return trade_id in self._prices

    def observe(self, trade_id: str, price: float, timestamp: Optional[datetime] = None) -> bool:
        """Record a price. Returns False when the observation was stale."""
        ts = ensure_utc(timestamp) if timestamp is not None else None
        held = self._prices.get(trade_id)
        if held is not None and held[1] is not None and ts is not None and ts < held[1]:
            return False
        self._prices[trade_id] = (float(price), ts)
        return True

    def observe_datapoints(self, trade_id: str, datapoints: Sequence[TradeDatapoint]) -> bool:
        if not datapoints:
            return False
        latest = max(datapoints, key=lambda dp: dp.timestamp)
        return self.observe(trade_id, latest.current_price, latest.timestamp)

    def latest(self, trade_id: str) -> Optional[float]:
        held = self._prices.get(trade_id)
        return held[0] if held is not None else None

    def snapshot(self) -> Dict[str, float]:
        return {trade_id: price for trade_id, (price, _) in self._prices.items()}


@dataclass(frozen=True)
class PortfolioSummary:
    total_open_pl: float
    today_realized_pl: float
    portfolio_value: float
    open_rows: List[TradePnL] = field(default_factory=list)
    historical_rows: List[TradePnL] = field(default_factory=list)

    @property
    def priced_open_trades(self) -> int:
        return sum(1 for row in self.open_rows if row.has_price)


class PortfolioAggregator:
    def __init__(self, price_book: PriceBook, *, timezone: str = DEFAULT_TIMEZONE) -> None:
        self.price_book = price_book
        self.timezone = timezone

    def trade_pnl(self, trade: Trade) -> TradePnL:
        if trade.status is TradeStatus.CLOSED:
            return trade_pnl(trade)
        return trade_pnl(trade, self.price_book.latest(trade.trade_id))

    def total_open_pl(self, open_trades: Iterable[OpenTrade]) -> float:
        return math.fsum(self.trade_pnl(t).profit_loss_dollars for t in open_trades)

    def portfolio_value(self, open_trades: Iterable[OpenTrade]) -> float:
        return math.fsum(self.trade_pnl(t).current_value * t.quantity for t in open_trades)

    def closed_today(self, trade: HistoricalTrade, now: Optional[datetime] = None) -> bool:
        if trade.closed_time is None:
            return False
        today = civil_date(now or utc_now(), self.timezone)
        return civil_date(trade.closed_time, self.timezone) == today

    def today_realized_pl(
        self,
        historical_trades: Iterable[HistoricalTrade],
        now: Optional[datetime] = None,
    ) -> float:
        now = now or utc_now()
        return math.fsum(
            profit_loss_dollars(t, t.sold_price)
            for t in historical_trades
            if self.closed_today(t, now)
        )

    def summarize(
        self,
        open_trades: Sequence[OpenTrade],
        historical_trades: Sequence[HistoricalTrade],
        now: Optional[datetime] = None,
    ) -> PortfolioSummary:
        return PortfolioSummary(
            total_open_pl=self.total_open_pl(open_trades),
            today_realized_pl=self.today_realized_pl(historical_trades, now),
            portfolio_value=self.portfolio_value(open_trades),
            open_rows=[self.trade_pnl(t) for t in open_trades],
            historical_rows=[self.trade_pnl(t) for t in historical_trades],
        )
