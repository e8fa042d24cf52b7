"""
Root conftest for tests.

This ensures module-level state set during a test (the gateway service
installed by the app lifespan and the current query ID) does not leak into
the next test.
"""

from collections.abc import Iterator

import pytest

from apps.duckdb_gateway import routes
from libs.common.logging.context import clear_query_id


@pytest.fixture(autouse=True)
def _reset_gateway_globals() -> Iterator[None]:
    """Reset the gateway service and query ID around every test."""
    routes.set_service(None)
    clear_query_id()
    yield
    routes.set_service(None)
    clear_query_id()
