# platypus_dashboard/api/state.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from platypus_dashboard.infrastructure.storage.mongo_client import get_database
from platypus_dashboard.infrastructure.storage.mongo_repository import TradeRepository
from platypus_dashboard.infrastructure.utils.config import DashboardConfig, get_config


@dataclass
class AppState:
    repo: TradeRepository
    config: DashboardConfig


_state: Optional[AppState] = None


def set_state(state: Optional[AppState]) -> None:
    global _state
    _state = state


def build_state(config: DashboardConfig) -> AppState:
    db = get_database(config.mongodb)
    return AppState(repo=TradeRepository(db, config.mongodb.collections), config=config)


def get_state() -> AppState:
    """Current state; built from the on-disk configuration on first use."""
    global _state
    if _state is None:
        _state = build_state(get_config())
    return _state
