"""Trade domain models.

Store documents use camelCase keys; these dataclasses keep snake_case
attributes and translate at the edges via ``from_document`` / ``to_document``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from platypus_dashboard.infrastructure.utils.timeutils import parse_datetime, to_iso

JsonDict = Dict[str, Any]
Number = Union[int, float]


class TradeStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


def _quantity(value: Any) -> Number:
    # Stored ints stay ints; only non-numeric values are coerced.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return float(value)


def _required_datetime(doc: Mapping[str, Any], key: str) -> datetime:
    value = parse_datetime(doc.get(key))
    if value is None:
        raise ValueError(f"document is missing '{key}'")
    return value


@dataclass(frozen=True)
class OpenTrade:
    trade_id: str
    ticker: str
    description: str
    quantity: Number
    opened_time: datetime
    purchase_price: float
    # Placeholders (0) until the trade closes. Live P/L comes from datapoints.
    change_percent: float = 0.0
    change_dollars: float = 0.0

    @property
    def status(self) -> TradeStatus:
        return TradeStatus.OPEN

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "OpenTrade":
        return cls(
            trade_id=str(doc["trade_id"]),
            ticker=str(doc.get("ticker", "")),
            description=str(doc.get("description", "")),
            quantity=_quantity(doc["quantity"]),
            opened_time=_required_datetime(doc, "openedTime"),
            purchase_price=float(doc["purchasePrice"]),
            change_percent=float(doc.get("changePercent") or 0.0),
            change_dollars=float(doc.get("changeDollars") or 0.0),
        )

    def to_document(self) -> JsonDict:
        return {
            "trade_id": self.trade_id,
            "ticker": self.ticker,
            "description": self.description,
            "quantity": self.quantity,
            "openedTime": to_iso(self.opened_time),
            "purchasePrice": self.purchase_price,
            "changePercent": self.change_percent,
            "changeDollars": self.change_dollars,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class HistoricalTrade(OpenTrade):
    """A closed trade. Keeps the trade_id it had while open."""

    sold_price: float = 0.0
    closed_time: Optional[datetime] = None

    @property
    def status(self) -> TradeStatus:
        return TradeStatus.CLOSED

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "HistoricalTrade":
        base = OpenTrade.from_document(doc)
        return cls(
            trade_id=base.trade_id,
            ticker=base.ticker,
            description=base.description,
            quantity=base.quantity,
            opened_time=base.opened_time,
            purchase_price=base.purchase_price,
            change_percent=base.change_percent,
            change_dollars=base.change_dollars,
            sold_price=float(doc["soldPrice"]),
            closed_time=_required_datetime(doc, "closedTime"),
        )

    def to_document(self) -> JsonDict:
        out = super().to_document()
        out["soldPrice"] = self.sold_price
        out["closedTime"] = to_iso(self.closed_time)
        return out


Trade = Union[OpenTrade, HistoricalTrade]


@dataclass(frozen=True)
class TradeDatapoint:
    trade_id: str
    timestamp: datetime
    current_price: float

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "TradeDatapoint":
        return cls(
            trade_id=str(doc["trade_id"]),
            timestamp=_required_datetime(doc, "timestamp"),
            current_price=float(doc["currentPrice"]),
        )

    def to_document(self) -> JsonDict:
        return {
            "trade_id": self.trade_id,
            "timestamp": to_iso(self.timestamp),
            "currentPrice": self.current_price,
        }


@dataclass(frozen=True)
class SystemConfig:
    status: str
    profit_ytd: float
    last_updated: Optional[datetime]

    @property
    def is_healthy(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "SystemConfig":
        return cls(
            status=str(doc.get("status", "")),
            profit_ytd=float(doc.get("profitYTD") or 0.0),
            last_updated=parse_datetime(doc.get("lastUpdated")),
        )

    def to_document(self) -> JsonDict:
        return {
            "status": self.status,
            "profitYTD": self.profit_ytd,
            "lastUpdated": to_iso(self.last_updated),
        }


@dataclass(frozen=True)
class LongTermPerformance:
    total_trades: int
    total_capital_traded: float
    total_pnl_dollars: float
    total_pnl_percent: float
    win_rate: float  # 0..100

    @property
    def average_entry_price(self) -> float:
        if self.total_trades > 0:
            return self.total_capital_traded / self.total_trades
        return 0.0

    @property
    def is_winning(self) -> bool:
        return self.win_rate >= 50

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "LongTermPerformance":
        return cls(
            total_trades=int(doc.get("totalTrades") or 0),
            total_capital_traded=float(doc.get("totalCapitalTraded") or 0.0),
            total_pnl_dollars=float(doc.get("totalPnlDollars") or 0.0),
            total_pnl_percent=float(doc.get("totalPnlPercent") or 0.0),
            win_rate=float(doc.get("winRate") or 0.0),
        )

    def to_document(self) -> JsonDict:
        return {
            "totalTrades": self.total_trades,
            "totalCapitalTraded": self.total_capital_traded,
            "totalPnlDollars": self.total_pnl_dollars,
            "totalPnlPercent": self.total_pnl_percent,
            "winRate": self.win_rate,
        }


@dataclass(frozen=True)
class LongPosition:
    symbol: str
    quantity: Number
    cost_basis: float  # per share
    percent_change: float
    total_value: float

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "LongPosition":
        return cls(
            symbol=str(doc["symbol"]),
            quantity=_quantity(doc["quantity"]),
            cost_basis=float(doc["costBasis"]),
            percent_change=float(doc.get("percentChange") or 0.0),
            total_value=float(doc.get("totalValue") or 0.0),
        )

    def to_document(self) -> JsonDict:
        return {
            "symbol": self.symbol,
            "quantity": self.quantity,
            "costBasis": self.cost_basis,
            "percentChange": self.percent_change,
            "totalValue": self.total_value,
        }


def trade_from_document(doc: Mapping[str, Any]) -> Trade:
    """Rebuild a trade from its API form, using the explicit status tag."""
    status = TradeStatus(str(doc.get("status", TradeStatus.OPEN.value)).upper())
    if status is TradeStatus.CLOSED:
        return HistoricalTrade.from_document(doc)
    return OpenTrade.from_document(doc)
