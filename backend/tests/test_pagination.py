"""Tests for the history pagination window and its optimistic has_more flag."""

from datetime import timedelta

import pytest

from conftest import BASE_TIME, historical_trade_doc

from platypus_dashboard.services.pagination.paginator import page_offset, paginate


def _fetcher(repo):
    return lambda skip, limit: repo.list_historical_trades(skip=skip, limit=limit)


def _seed(db, n):
    if n:
        db.historical_trades.insert_many([
            historical_trade_doc(f"t-{i:03d}", closed=BASE_TIME - timedelta(minutes=i))
            for i in range(n)
        ])


def test_page_offset():
    assert page_offset(1, 25) == 0
    assert page_offset(3, 20) == 40


@pytest.mark.parametrize("page,size", [(0, 25), (-1, 25), (1, 0)])
def test_invalid_page_arguments_rejected(page, size):
    with pytest.raises(ValueError):
        page_offset(page, size)


def test_exactly_full_collection_needs_one_empty_page(db, repo):
    _seed(db, 25)

    first = paginate(_fetcher(repo), page=1, page_size=25)
    assert len(first.records) == 25
    assert first.has_more is True

    second = paginate(_fetcher(repo), page=2, page_size=25)
    assert second.records == []
    assert second.has_more is False


def test_short_last_page_ends_paging(db, repo):
    _seed(db, 30)

    second = paginate(_fetcher(repo), page=2, page_size=25)
    assert len(second.records) == 5
    assert second.has_more is False


def test_pages_are_sorted_and_disjoint(db, repo):
    _seed(db, 30)

    pages = [paginate(_fetcher(repo), page=p, page_size=7) for p in (1, 2, 3)]
    for page in pages:
        assert len(page.records) <= 7
        closed = [t.closed_time for t in page.records]
        assert closed == sorted(closed, reverse=True)
        ids = [t.trade_id for t in page.records]
        assert len(ids) == len(set(ids))

    all_ids = [t.trade_id for page in pages for t in page.records]
    assert all_ids == [f"t-{i:03d}" for i in range(21)]


def test_empty_collection(repo):
    page = paginate(_fetcher(repo), page=1, page_size=25)
    assert page.records == []
    assert page.has_more is False


def test_fetcher_returning_too_many_is_capped():
    page = paginate(lambda skip, limit: list(range(limit + 3)), page=1, page_size=4)
    assert page.records == [0, 1, 2, 3]
    assert page.has_more is True
