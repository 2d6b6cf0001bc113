"""aiohttp application exposing borrower snapshots."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

from aiohttp import web

from ..errors import QueryError
from ..store import SnapshotStore

logger = logging.getLogger(__name__)

STORE_KEY = web.AppKey("store", SnapshotStore)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
}


@web.middleware
async def edge_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Every client-visible failure is a bare 400; CORS headers on everything."""
    try:
        response = await handler(request)
    except web.HTTPException as e:
        logger.debug("%s %s -> %d", request.method, request.path, e.status)
        response = web.Response(status=400, text="Bad Request")
    except Exception as e:
        logger.error("%s %s failed: %r", request.method, request.path, e)
        response = web.Response(status=400, text="Bad Request")
    response.headers.update(_CORS_HEADERS)
    return response


async def get_borrowers(request: web.Request) -> web.Response:
    instance_id = request.match_info["instance_id"]
    try:
        snapshot = request.app[STORE_KEY].export(instance_id)
    except QueryError as e:
        logger.info("Rejected query: %s", e)
        raise web.HTTPBadRequest()
    return web.json_response(snapshot)


def create_app(store: SnapshotStore) -> web.Application:
    """Build the web application serving ``GET /borrowers/{instance_id}``."""
    app = web.Application(middlewares=[edge_middleware], client_max_size=100)
    app[STORE_KEY] = store
    app.router.add_get("/borrowers/{instance_id}", get_borrowers)
    return app
