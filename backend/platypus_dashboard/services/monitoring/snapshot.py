"""In-memory dashboard snapshot for the report CLI and other API consumers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from platypus_dashboard.models.trade_models import (
    HistoricalTrade,
    LongTermPerformance,
    OpenTrade,
    SystemConfig,
)
from platypus_dashboard.services.pnl.aggregator import (
    DEFAULT_TIMEZONE,
    PortfolioAggregator,
    PortfolioSummary,
    PriceBook,
)


@dataclass
class DashboardSnapshot:
    open_trades: List[OpenTrade] = field(default_factory=list)
    historical_trades: List[HistoricalTrade] = field(default_factory=list)
    system_config: Optional[SystemConfig] = None
    long_term_performance: Optional[LongTermPerformance] = None
    price_book: PriceBook = field(default_factory=PriceBook)
    price_errors: Dict[str, str] = field(default_factory=dict)
    has_more_history: bool = False
    timezone: str = DEFAULT_TIMEZONE

    @property
    def aggregator(self) -> PortfolioAggregator:
        return PortfolioAggregator(self.price_book, timezone=self.timezone)

    def summary(self, now: Optional[datetime] = None) -> PortfolioSummary:
        return self.aggregator.summarize(self.open_trades, self.historical_trades, now)
