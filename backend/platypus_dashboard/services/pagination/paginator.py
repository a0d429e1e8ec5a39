"""Offset pagination over the historical-trades collection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 25
SUMMARY_PAGE_SIZE = 20


@dataclass(frozen=True)
class Page(Generic[T]):
    records: List[T]
    page: int
    page_size: int
    has_more: bool


def page_offset(page: int, page_size: int) -> int:
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    return (page - 1) * page_size


def paginate(
    fetch_window: Callable[[int, int], List[T]],
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Page[T]:
    """Fetch one window via ``fetch_window(skip, limit)``.

    ``has_more`` is optimistic: it is True whenever the page came back full,
    so a collection whose size is an exact multiple of ``page_size`` costs
    one extra, empty request before it turns False. No snapshot is held
    between calls; concurrent writes may shift records across page boundaries.
    """
    skip = page_offset(page, page_size)
    records = list(fetch_window(skip, page_size))[:page_size]
    return Page(
        records=records,
        page=page,
        page_size=page_size,
        has_more=len(records) == page_size,
    )
