"""ASGI middleware assigning a query ID to every HTTP request.

The ID is taken from the ``X-Query-ID`` request header when present, otherwise
generated, and is echoed on the response, including error responses produced
by exception handlers.

Example:
    >>> from fastapi import FastAPI
    >>> from libs.common.logging.middleware import add_query_id_middleware
    >>> app = FastAPI()
    >>> add_query_id_middleware(app)
"""

from typing import Any, Callable

from fastapi import FastAPI
from starlette.types import ASGIApp

from libs.common.logging.context import (
    QUERY_ID_HEADER,
    clear_query_id,
    generate_query_id,
    set_query_id,
)


class ASGIQueryIDMiddleware:
    """Low-level ASGI middleware; sits outside FastAPI's exception handling."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: dict[str, Any], receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        query_id_bytes = headers.get(QUERY_ID_HEADER.lower().encode())
        query_id = query_id_bytes.decode() if query_id_bytes else generate_query_id()

        set_query_id(query_id)

        async def send_with_query_id(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                response_headers.append((QUERY_ID_HEADER.lower().encode(), query_id.encode()))
                message["headers"] = response_headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_query_id)
        finally:
            clear_query_id()


def add_query_id_middleware(app: FastAPI) -> None:
    app.add_middleware(ASGIQueryIDMiddleware)
