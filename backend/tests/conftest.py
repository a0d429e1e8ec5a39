from datetime import datetime, timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from platypus_dashboard.api.state import AppState, set_state
from platypus_dashboard.controllers.api_controller import app
from platypus_dashboard.infrastructure.storage.mongo_repository import TradeRepository
from platypus_dashboard.infrastructure.utils.config import DashboardConfig

# Naive datetimes are UTC, the way pymongo hands them back.
BASE_TIME = datetime(2026, 10, 19, 15, 0, 0)


def open_trade_doc(trade_id, ticker="SPY", purchase_price=10.0, quantity=5, opened=None):
    return {
        "trade_id": trade_id,
        "ticker": ticker,
        "description": f"{ticker} 450C 11/21",
        "quantity": quantity,
        "openedTime": opened or BASE_TIME,
        "purchasePrice": purchase_price,
        "changePercent": 0,
        "changeDollars": 0,
    }


def historical_trade_doc(trade_id, purchase_price=10.0, sold_price=8.0, quantity=3, closed=None, ticker="QQQ"):
    closed = closed or BASE_TIME
    doc = open_trade_doc(trade_id, ticker=ticker, purchase_price=purchase_price, quantity=quantity,
                         opened=closed - timedelta(hours=2))
    doc.update({"soldPrice": sold_price, "closedTime": closed})
    return doc


def datapoint_doc(trade_id, price, ts):
    return {"trade_id": trade_id, "timestamp": ts, "currentPrice": price}


@pytest.fixture
def db():
    return mongomock.MongoClient()["platypus_dashboard_db"]


@pytest.fixture
def repo(db):
    return TradeRepository(db)


@pytest.fixture
def seeded_db(db):
    db.open_trades.insert_many([
        open_trade_doc("open-1", ticker="SPY", purchase_price=10.0, quantity=5, opened=BASE_TIME),
        open_trade_doc("open-2", ticker="AAPL", purchase_price=4.0, quantity=2, opened=BASE_TIME - timedelta(hours=1)),
    ])
    db.historical_trades.insert_many([
        historical_trade_doc(f"hist-{i:02d}", closed=BASE_TIME - timedelta(hours=i))
        for i in range(30)
    ])
    db.trade_datapoints.insert_many([
        datapoint_doc("open-1", 11.0, BASE_TIME + timedelta(minutes=1)),
        datapoint_doc("open-1", 12.0, BASE_TIME + timedelta(minutes=2)),
        datapoint_doc("open-1", 10.5, BASE_TIME),
        datapoint_doc("open-2", 3.0, BASE_TIME + timedelta(minutes=5)),
    ])
    db.configuration.insert_one({"status": "active", "profitYTD": 1520.5, "lastUpdated": BASE_TIME})
    db.long_term_performance.insert_one({
        "totalTrades": 40,
        "totalCapitalTraded": 200.0,
        "totalPnlDollars": 310.25,
        "totalPnlPercent": 12.5,
        "winRate": 62.5,
    })
    db.long_positions.insert_many([
        {"symbol": "MSFT", "quantity": 10, "costBasis": 300.0, "percentChange": 10.0, "totalValue": 3300.0},
        {"symbol": "TSLA", "quantity": 2, "costBasis": 250.0, "percentChange": -20.0, "totalValue": 400.0},
    ])
    return db


@pytest.fixture
def api(seeded_db):
    state = AppState(repo=TradeRepository(seeded_db), config=DashboardConfig())
    set_state(state)
    yield TestClient(app)
    set_state(None)
