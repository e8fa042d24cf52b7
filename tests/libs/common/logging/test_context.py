"""Tests for query ID context management."""

import asyncio
from collections.abc import Iterator

import pytest

from libs.common.logging.context import (
    clear_query_id,
    generate_query_id,
    get_or_create_query_id,
    get_query_id,
    set_query_id,
)


@pytest.fixture(autouse=True)
def _cleanup_query_context() -> Iterator[None]:
    clear_query_id()
    yield
    clear_query_id()


def test_generate_query_id_is_uuid4() -> None:
    query_id = generate_query_id()

    assert len(query_id) == 36
    assert query_id[14] == "4"
    assert generate_query_id() != query_id


def test_set_and_get() -> None:
    set_query_id("query-1")

    assert get_query_id() == "query-1"


def test_set_empty_raises() -> None:
    with pytest.raises(ValueError, match="cannot be empty"):
        set_query_id("")


def test_get_or_create_reuses_existing() -> None:
    set_query_id("query-2")

    assert get_or_create_query_id() == "query-2"


def test_get_or_create_stores_new_id() -> None:
    query_id = get_or_create_query_id()

    assert get_query_id() == query_id


@pytest.mark.asyncio()
async def test_query_id_reaches_worker_threads() -> None:
    set_query_id("threaded")

    assert await asyncio.to_thread(get_query_id) == "threaded"
