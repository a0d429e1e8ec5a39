"""Cached pymongo client.

One MongoClient per connection string for the life of the process; pymongo
clients are thread-safe and pool their own connections.
"""

from __future__ import annotations

from typing import Dict

from pymongo import MongoClient
from pymongo.database import Database

from platypus_dashboard.infrastructure.logging.logging import get_logger, mask_uri
from platypus_dashboard.infrastructure.utils.config import MongoDBConfig

_clients: Dict[str, MongoClient] = {}

log = get_logger("mongo_client")


def get_client(cfg: MongoDBConfig) -> MongoClient:
    client = _clients.get(cfg.uri)
    if client is not None:
        log.debug("mongo_client_reused")
        return client

    log.info("mongo_client_created", uri=mask_uri(cfg.uri), database=cfg.database, timeout_ms=cfg.timeout_ms)
    client = MongoClient(
        cfg.uri,
        serverSelectionTimeoutMS=cfg.timeout_ms,
        connectTimeoutMS=cfg.timeout_ms,
        socketTimeoutMS=cfg.timeout_ms,
        tz_aware=True,
    )
    _clients[cfg.uri] = client
    return client


def get_database(cfg: MongoDBConfig) -> Database:
    return get_client(cfg)[cfg.database]


def close_clients() -> None:
    for client in _clients.values():
        client.close()
    _clients.clear()
