import math
import random
from datetime import datetime, timedelta, timezone

import pytest

from platypus_dashboard.models.trade_models import HistoricalTrade, OpenTrade, TradeDatapoint, TradeStatus
from platypus_dashboard.services.pnl.aggregator import (
    PortfolioAggregator,
    PriceBook,
    current_value,
    is_profit,
    profit_loss_dollars,
    profit_loss_percent,
    trade_pnl,
)

UTC = timezone.utc
# 10:00 in Chicago (CDT, UTC-5) on Oct 19.
NOW = datetime(2026, 10, 19, 15, 0, tzinfo=UTC)


def make_open(trade_id="o1", purchase_price=10.0, quantity=5):
    return OpenTrade(
        trade_id=trade_id,
        ticker="SPY",
        description="SPY 450C",
        quantity=quantity,
        opened_time=NOW - timedelta(hours=3),
        purchase_price=purchase_price,
    )


def make_closed(trade_id="h1", purchase_price=10.0, sold_price=8.0, quantity=3, closed=NOW):
    return HistoricalTrade(
        trade_id=trade_id,
        ticker="QQQ",
        description="QQQ 380P",
        quantity=quantity,
        opened_time=closed - timedelta(hours=1),
        purchase_price=purchase_price,
        sold_price=sold_price,
        closed_time=closed,
    )


def test_open_trade_scenario():
    trade = make_open(purchase_price=10.0, quantity=5)
    row = trade_pnl(trade, latest_price=12.0)
    assert row.current_value == 12.0
    assert row.profit_loss_dollars == pytest.approx(10.0)
    assert row.profit_loss_percent == pytest.approx(20.0)
    assert row.is_profit is True
    assert row.status is TradeStatus.OPEN


def test_open_trade_without_price_reads_flat():
    trade = make_open()
    assert current_value(trade) == trade.purchase_price
    row = trade_pnl(trade)
    assert row.profit_loss_dollars == 0
    assert row.is_profit is True
    assert row.has_price is False


@pytest.mark.parametrize("supplied", [None, 0.01, 8.0, 999.0])
def test_closed_trade_value_is_always_sold_price(supplied):
    trade = make_closed(sold_price=8.0)
    assert current_value(trade, supplied) == 8.0


def test_zero_counts_as_profit():
    assert is_profit(0.0) is True
    assert is_profit(-0.01) is False


def test_percent_with_zero_purchase_price_is_not_finite():
    trade = make_open(purchase_price=0.0)
    assert profit_loss_percent(trade, 1.0) == math.inf
    assert profit_loss_percent(trade, -1.0) == -math.inf
    assert math.isnan(profit_loss_percent(trade, 0.0))


def test_dollars_formula_holds_for_random_trades():
    rng = random.Random(7)
    for _ in range(50):
        trade = make_open(purchase_price=rng.uniform(0.5, 50), quantity=rng.randint(1, 20))
        value = rng.uniform(0.1, 60)
        expected = (value - trade.purchase_price) * trade.quantity
        assert profit_loss_dollars(trade, value) == pytest.approx(expected)
        assert is_profit(profit_loss_dollars(trade, value)) == (expected >= 0)


def test_price_book_keeps_newest_observation():
    book = PriceBook()
    assert book.observe("o1", 11.0, NOW) is True
    assert book.observe("o1", 9.0, NOW - timedelta(minutes=1)) is False
    assert book.latest("o1") == 11.0
    assert book.observe("o1", 12.5, NOW + timedelta(minutes=1)) is True
    assert book.latest("o1") == 12.5
    assert book.latest("missing") is None


def test_price_book_uses_last_datapoint():
    book = PriceBook()
    points = [
        TradeDatapoint("o1", NOW, 10.0),
        TradeDatapoint("o1", NOW + timedelta(minutes=2), 12.0),
        TradeDatapoint("o1", NOW + timedelta(minutes=1), 11.0),
    ]
    assert book.observe_datapoints("o1", points) is True
    assert book.latest("o1") == 12.0
    assert book.observe_datapoints("o2", []) is False
    assert "o2" not in book


def test_open_totals_use_price_book_and_skip_unpriced():
    book = PriceBook()
    book.observe("o1", 12.0, NOW)
    agg = PortfolioAggregator(book)
    trades = [make_open("o1", 10.0, 5), make_open("o2", 4.0, 2)]

    assert agg.total_open_pl(trades) == pytest.approx(10.0)
    assert agg.portfolio_value(trades) == pytest.approx(12.0 * 5 + 4.0 * 2)


def test_today_realized_uses_chicago_calendar_day():
    agg = PortfolioAggregator(PriceBook())
    today = make_closed("h1", 10.0, 8.0, 3, closed=NOW)
    # 22:00 Chicago on Oct 19 is 03:00 UTC on Oct 20.
    late_today = make_closed("h2", 10.0, 11.0, 1, closed=datetime(2026, 10, 20, 3, 0, tzinfo=UTC))
    # 23:30 Chicago on Oct 18 is 04:30 UTC on Oct 19: same UTC day, previous business day.
    yesterday = make_closed("h3", 10.0, 20.0, 1, closed=datetime(2026, 10, 19, 4, 30, tzinfo=UTC))

    assert agg.today_realized_pl([today], NOW) == pytest.approx(-6.0)
    assert agg.today_realized_pl([today, late_today, yesterday], NOW) == pytest.approx(-5.0)


def test_aggregation_is_order_independent():
    rng = random.Random(11)
    book = PriceBook()
    trades = []
    for i in range(40):
        t = make_open(f"o{i}", rng.uniform(1, 100), rng.randint(1, 10))
        trades.append(t)
        if i % 3:
            book.observe(t.trade_id, rng.uniform(1, 100), NOW)
    agg = PortfolioAggregator(book)
    total = agg.total_open_pl(trades)
    for _ in range(5):
        shuffled = trades[:]
        rng.shuffle(shuffled)
        assert agg.total_open_pl(shuffled) == pytest.approx(total)


def test_summarize_bundles_rows():
    book = PriceBook()
    book.observe("o1", 12.0, NOW)
    agg = PortfolioAggregator(book)
    summary = agg.summarize([make_open("o1"), make_open("o2")], [make_closed()], NOW)

    assert summary.total_open_pl == pytest.approx(10.0)
    assert summary.today_realized_pl == pytest.approx(-6.0)
    assert summary.priced_open_trades == 1
    assert [r.trade_id for r in summary.open_rows] == ["o1", "o2"]
    assert summary.historical_rows[0].current_value == 8.0
    assert summary.historical_rows[0].is_profit is False
