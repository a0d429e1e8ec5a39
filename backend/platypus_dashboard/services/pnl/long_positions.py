"""Per-position and book-level numbers for long equity holdings."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence

from platypus_dashboard.models.trade_models import LongPosition


@dataclass(frozen=True)
class LongPositionPnL:
    symbol: str
    total_cost: float
    profit_loss_dollars: float
    percent_change: float
    is_profit: bool


@dataclass(frozen=True)
class LongBookSummary:
    total_value: float
    total_cost_basis: float
    total_pl: float
    total_pl_percent: float
    rows: List[LongPositionPnL]


def position_pnl(position: LongPosition) -> LongPositionPnL:
    total_cost = position.cost_basis * position.quantity
    return LongPositionPnL(
        symbol=position.symbol,
        total_cost=total_cost,
        profit_loss_dollars=position.total_value - total_cost,
        percent_change=position.percent_change,
        is_profit=position.percent_change >= 0,
    )


def summarize_long_positions(
    positions: Sequence[LongPosition],
    *,
    weight_cost_basis_by_quantity: bool = False,
) -> LongBookSummary:
    """Totals over the long book.

    With ``weight_cost_basis_by_quantity`` off, the total cost basis is the
    plain sum of per-share cost bases, matching what the dashboard has always
    shown. Turn it on to get a dollar cost basis (costBasis * quantity).
    """
    total_value = math.fsum(p.total_value for p in positions)
    if weight_cost_basis_by_quantity:
        total_cost_basis = math.fsum(p.cost_basis * p.quantity for p in positions)
    else:
        total_cost_basis = math.fsum(p.cost_basis for p in positions)

    total_pl = total_value - total_cost_basis
    total_pl_percent = (total_pl / total_cost_basis) * 100 if total_cost_basis > 0 else 0.0

    return LongBookSummary(
        total_value=total_value,
        total_cost_basis=total_cost_basis,
        total_pl=total_pl,
        total_pl_percent=total_pl_percent,
        rows=[position_pnl(p) for p in positions],
    )
