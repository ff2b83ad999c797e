"""Page walkers for FEC API result sets."""

from collections.abc import Callable, Hashable, Iterable, Iterator
from typing import Any, TypeVar

from lean_ledger_etl.clients.fec import FECAPIClient
from lean_ledger_etl.models.fec import Pagination
from lean_ledger_etl.utils.log import get_logger

T = TypeVar("T")


def walk_cursor_pages(
    client: FECAPIClient,
    endpoint: str,
    params: dict[str, Any],
    max_pages: int | None = None,
    max_records: int | None = None,
) -> Iterator[list[dict[str, Any]]]:
    """
    Walk a keyset-paginated endpoint page by page.

    The FEC itemized schedules return an opaque ``last_indexes`` pair in
    ``pagination`` (e.g. ``last_index`` + ``last_contribution_receipt_date``);
    every key in it is sent back verbatim to request the next page.

    The walk ends when a page comes back empty, when ``last_indexes`` is
    missing or incomplete, when the reported page count is reached, or when
    a safety cap is hit. Short pages are not treated as a signal either way.

    Args:
        client: FEC API client
        endpoint: API endpoint path
        params: Base query parameters (not mutated)
        max_pages: Stop after this many pages
        max_records: Stop once this many records were yielded (the last
            page is truncated to the cap)

    Yields:
        Each page's ``results`` list
    """
    logger = get_logger(__name__)

    request_params = dict(params)
    pages_fetched = 0
    records_yielded = 0

    while True:
        data = client.get(endpoint, request_params)
        results = data.get("results") or []
        pagination = Pagination.model_validate(data.get("pagination") or {})

        if not results:
            logger.debug(f"No more results for {endpoint} after {pages_fetched} pages")
            break

        if max_records is not None and records_yielded + len(results) > max_records:
            results = results[: max_records - records_yielded]

        pages_fetched += 1
        records_yielded += len(results)
        yield results

        if max_records is not None and records_yielded >= max_records:
            logger.debug(f"Reached record cap ({max_records}) for {endpoint}")
            break

        if max_pages is not None and pages_fetched >= max_pages:
            logger.debug(f"Reached page cap ({max_pages}) for {endpoint}")
            break

        if pagination.pages and pages_fetched >= pagination.pages:
            break

        cursor = pagination.next_cursor
        if cursor is None:
            break

        request_params = {**request_params, **cursor}


def walk_numbered_pages(
    client: FECAPIClient,
    endpoint: str,
    params: dict[str, Any],
    max_pages: int | None = None,
) -> Iterator[list[dict[str, Any]]]:
    """
    Walk a page-number paginated endpoint (candidate and committee lookups).

    Args:
        client: FEC API client
        endpoint: API endpoint path
        params: Base query parameters (not mutated)
        max_pages: Stop after this many pages

    Yields:
        Each page's ``results`` list
    """
    page = 1

    while True:
        data = client.get(endpoint, {**params, "page": page})
        results = data.get("results") or []

        if not results:
            break

        yield results

        if max_pages is not None and page >= max_pages:
            break

        pagination = Pagination.model_validate(data.get("pagination") or {})
        if not pagination.pages or page >= pagination.pages:
            break

        page += 1


def merge_unique(
    result_sets: Iterable[Iterable[T]],
    key: Callable[[T], Hashable | None],
    limit: int | None = None,
) -> list[T]:
    """
    Flatten several query variants into one list, first-seen order.

    Items whose key is ``None`` cannot be compared and are always kept.
    Consumption stops as soon as ``limit`` items are collected, so lazy
    page walkers stop issuing requests too.

    Args:
        result_sets: Iterables of items (e.g. one walker per election cycle)
        key: Uniqueness key for an item
        limit: Maximum number of items to collect

    Returns:
        Deduplicated items
    """
    seen: set[Hashable] = set()
    merged: list[T] = []

    for result_set in result_sets:
        for item in result_set:
            item_key = key(item)
            if item_key is not None:
                if item_key in seen:
                    continue
                seen.add(item_key)
            merged.append(item)

            if limit is not None and len(merged) >= limit:
                return merged

    return merged


def iter_records(pages: Iterable[list[T]]) -> Iterator[T]:
    """Flatten a page walker into a record stream."""
    for page in pages:
        yield from page
