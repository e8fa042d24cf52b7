"""Query ID context propagation for request correlation.

Each HTTP request to the gateway gets a query ID (UUIDv4). It is stored in a
context variable so every log line emitted while serving the request, including
those from worker threads started with ``asyncio.to_thread``, carries it.

Example:
    >>> from libs.common.logging.context import generate_query_id, set_query_id
    >>> query_id = generate_query_id()
    >>> set_query_id(query_id)
    >>> get_query_id() == query_id
    True
"""

import contextvars
import uuid

_query_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "query_id", default=None
)

# HTTP header used to accept and echo query IDs
QUERY_ID_HEADER = "X-Query-ID"


def generate_query_id() -> str:
    """Generate a new unique query ID (UUID v4 string)."""
    return str(uuid.uuid4())


def get_query_id() -> str | None:
    """Get the query ID for the current context, or None if unset."""
    return _query_id_var.get()


def set_query_id(query_id: str) -> None:
    """Set the query ID for the current context.

    Raises:
        ValueError: If query_id is empty
    """
    if not query_id:
        raise ValueError("Query ID cannot be empty")
    _query_id_var.set(query_id)


def clear_query_id() -> None:
    _query_id_var.set(None)


def get_or_create_query_id() -> str:
    """Return the current query ID, generating and storing one if missing."""
    query_id = get_query_id()
    if query_id is None:
        query_id = generate_query_id()
        set_query_id(query_id)
    return query_id
