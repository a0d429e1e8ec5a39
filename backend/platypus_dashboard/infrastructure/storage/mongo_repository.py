"""Read-only MongoDB repository for trades, datapoints and dashboard singletons."""

from __future__ import annotations

from typing import Any, Callable, List, Optional, TypeVar

from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

from platypus_dashboard.infrastructure.utils.config import CollectionNames
from platypus_dashboard.models.trade_models import (
    HistoricalTrade,
    LongPosition,
    LongTermPerformance,
    OpenTrade,
    SystemConfig,
    TradeDatapoint,
)

T = TypeVar("T")


class RepositoryError(RuntimeError):
    """The document store could not be reached or rejected a query."""


class TradeRepository:
    def __init__(self, db: Database, collections: Optional[CollectionNames] = None) -> None:
        self._db = db
        self._names = collections or CollectionNames()

    @property
    def database_name(self) -> str:
        return self._db.name

    def _run(self, what: str, query: Callable[[], T]) -> T:
        try:
            return query()
        except PyMongoError as e:
            raise RepositoryError(f"{what} failed: {e}") from e

    def list_open_trades(self) -> List[OpenTrade]:
        """All open trades, newest first."""

        def query() -> List[OpenTrade]:
            cursor = self._db[self._names.open_trades].find({}).sort("openedTime", DESCENDING)
            return [OpenTrade.from_document(d) for d in cursor]

        return self._run("open_trades", query)

    def list_historical_trades(self, *, skip: int = 0, limit: int = 25) -> List[HistoricalTrade]:
        """One window of closed trades ordered by closedTime descending.

        ``limit`` must be >= 1: a Mongo limit of 0 means "no limit".
        """
        if skip < 0:
            raise ValueError("skip must be >= 0")
        if limit < 1:
            raise ValueError("limit must be >= 1")

        def query() -> List[HistoricalTrade]:
            cursor = (
                self._db[self._names.historical_trades]
                .find({})
                .sort([("closedTime", DESCENDING), ("_id", DESCENDING)])
                .skip(skip)
                .limit(limit)
            )
            return [HistoricalTrade.from_document(d) for d in cursor]

        return self._run("historical_trades", query)

    def list_datapoints(self, trade_id: str) -> List[TradeDatapoint]:
        """Price history for one trade in chronological order (empty if none)."""

        def query() -> List[TradeDatapoint]:
            cursor = (
                self._db[self._names.trade_datapoints]
                .find({"trade_id": trade_id})
                .sort("timestamp", ASCENDING)
            )
            return [TradeDatapoint.from_document(d) for d in cursor]

        return self._run("trade_datapoints", query)

    def list_long_positions(self) -> List[LongPosition]:
        def query() -> List[LongPosition]:
            return [LongPosition.from_document(d) for d in self._db[self._names.long_positions].find({})]

        return self._run("long_positions", query)

    def _find_singleton(self, collection: str) -> Optional[Any]:
        return self._run(collection, lambda: self._db[collection].find_one({}))

    def get_system_config(self) -> Optional[SystemConfig]:
        doc = self._find_singleton(self._names.configuration)
        return SystemConfig.from_document(doc) if doc else None

    def get_long_term_performance(self) -> Optional[LongTermPerformance]:
        doc = self._find_singleton(self._names.long_term_performance)
        return LongTermPerformance.from_document(doc) if doc else None
