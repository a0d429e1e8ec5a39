from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from platypus_dashboard.api.state import get_state
from platypus_dashboard.infrastructure.logging.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
)
from platypus_dashboard.infrastructure.utils.config import APIConfig, get_config
from platypus_dashboard.services.pagination.paginator import paginate


JsonDict = Dict[str, Any]

DB_ERROR: JsonDict = {"error": "DB Error"}

log = get_logger("api")


def _cors_origins() -> List[str]:
    try:
        return get_config().api.cors_origins
    except FileNotFoundError:
        return APIConfig().cors_origins


app = FastAPI(title="Platypus Dashboard API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.middleware("http")
async def _request_logging(request: Request, call_next):
    bind_request_context(method=request.method, path=request.url.path)
    started = time.perf_counter()
    try:
        response = await call_next(request)
        log.info(
            "request_completed",
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response
    finally:
        clear_request_context()


def _db_error() -> JSONResponse:
    return JSONResponse(status_code=500, content=DB_ERROR)


# --------- Routes ---------
@app.get("/health")
def health():
    try:
        s = get_state()
    except Exception:
        log.exception("state_init_failed")
        return _db_error()
    return {"ok": True, "env": s.config.environment, "database": s.repo.database_name}


@app.get("/trades")
def trades(
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
):
    """Open trades (all), one page of historical trades, and the two singletons."""
    page_size = limit
    try:
        s = get_state()
        page_size = limit or s.config.pagination.default_page_size
        open_trades = s.repo.list_open_trades()
        log.debug("open_trades_fetched", count=len(open_trades))

        history = paginate(
            lambda skip, size: s.repo.list_historical_trades(skip=skip, limit=size),
            page=page,
            page_size=page_size,
        )
        log.debug("historical_trades_fetched", count=len(history.records), page=page, limit=page_size)

        performance = s.repo.get_long_term_performance()
        system_config = s.repo.get_system_config()
    except Exception:
        log.exception("trades_fetch_failed", page=page, limit=page_size)
        return _db_error()

    return {
        "openTrades": [t.to_document() for t in open_trades],
        "historicalTrades": [t.to_document() for t in history.records],
        "longTermPerformance": performance.to_document() if performance else None,
        "config": system_config.to_document() if system_config else None,
        "page": history.page,
        "limit": history.page_size,
        "hasMore": history.has_more,
    }


@app.get("/datapoints/{trade_id}")
def datapoints(trade_id: str):
    """Price history of one trade, oldest first. Unknown trade -> []."""
    try:
        s = get_state()
        points = s.repo.list_datapoints(trade_id)
    except Exception:
        log.exception("datapoints_fetch_failed", trade_id=trade_id)
        return _db_error()

    log.debug("datapoints_fetched", trade_id=trade_id, count=len(points))
    return [p.to_document() for p in points]


@app.get("/long-positions")
def long_positions():
    try:
        s = get_state()
        positions = s.repo.list_long_positions()
    except Exception:
        log.exception("long_positions_fetch_failed")
        return _db_error()

    return [p.to_document() for p in positions]
