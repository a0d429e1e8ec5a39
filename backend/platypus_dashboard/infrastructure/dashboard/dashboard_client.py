"""Async HTTP client for the dashboard API.

Every request runs under a bounded timeout; expiry, transport errors and
non-2xx answers all surface as DashboardFetchError, and so does a body
that is not JSON or not shaped like the API response.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import quote

import httpx

from platypus_dashboard.infrastructure.logging.logging import get_logger
from platypus_dashboard.models.trade_models import (
    HistoricalTrade,
    LongPosition,
    LongTermPerformance,
    OpenTrade,
    SystemConfig,
    TradeDatapoint,
)

JsonDict = Dict[str, Any]


class DashboardFetchError(RuntimeError):
    def __init__(self, path: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.status_code = status_code


@dataclass(frozen=True)
class TradesPage:
    open_trades: List[OpenTrade]
    historical_trades: List[HistoricalTrade]
    long_term_performance: Optional[LongTermPerformance]
    system_config: Optional[SystemConfig]
    page: int
    limit: int
    has_more: bool


class DashboardClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout_sec: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._logger = get_logger("dashboard_client", base_url=base_url)
        self._base_url = base_url
        self._timeout = timeout_sec
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "DashboardClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def _get_json(self, path: str, params: Optional[JsonDict] = None) -> Any:
        client = await self._get_client()
        try:
            resp = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise DashboardFetchError(path, f"timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise DashboardFetchError(path, f"transport error: {e}") from e

        if resp.status_code != 200:
            self._logger.warning("fetch_failed", path=path, status=resp.status_code)
            raise DashboardFetchError(path, f"HTTP {resp.status_code}", status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            self._logger.warning("fetch_invalid_body", path=path)
            raise DashboardFetchError(path, "invalid response body") from e
        self._logger.debug("fetch_ok", path=path)
        return data

    async def fetch_trades(self, page: int = 1, limit: int = 25) -> TradesPage:
        data = await self._get_json("/trades", params={"page": page, "limit": limit})
        with _body_errors("/trades"):
            perf = data.get("longTermPerformance")
            cfg = data.get("config")
            historical = [HistoricalTrade.from_document(d) for d in data.get("historicalTrades", [])]
            return TradesPage(
                open_trades=[OpenTrade.from_document(d) for d in data.get("openTrades", [])],
                historical_trades=historical,
                long_term_performance=LongTermPerformance.from_document(perf) if perf else None,
                system_config=SystemConfig.from_document(cfg) if cfg else None,
                page=int(data.get("page", page)),
                limit=int(data.get("limit", limit)),
                has_more=bool(data.get("hasMore", len(historical) == limit)),
            )

    async def fetch_datapoints(self, trade_id: str) -> List[TradeDatapoint]:
        path = f"/datapoints/{quote(trade_id, safe='')}"
        data = await self._get_json(path)
        with _body_errors(path):
            return [TradeDatapoint.from_document(d) for d in data]

    async def fetch_long_positions(self) -> List[LongPosition]:
        data = await self._get_json("/long-positions")
        with _body_errors("/long-positions"):
            return [LongPosition.from_document(d) for d in data]


@contextmanager
def _body_errors(path: str) -> Iterator[None]:
    """A 200 whose JSON does not have the expected shape is a fetch failure."""
    try:
        yield
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise DashboardFetchError(path, "invalid response body") from e
