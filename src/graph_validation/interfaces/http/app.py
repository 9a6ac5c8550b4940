"""Starlette ASGI application exposing executions over HTTP.

Routes:
    POST /executions               start an execution, 202 + Location
    GET  /executions/{id}          execution status document
    GET  /executions/{id}/summary  validation counts of an execution

Usage:
    from graph_validation.interfaces.http.app import create_app

    app = create_app(service)
    uvicorn.run(app, host="0.0.0.0", port=80)
"""

from __future__ import annotations

import contextlib
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from graph_validation.core.exceptions import NotFoundError, PersistenceError
from graph_validation.core.sparql import escape_uri
from graph_validation.service import ValidationService

logger = logging.getLogger(__name__)

JSONAPI_MEDIA_TYPE = "application/vnd.api+json"


def _error_response(status_code: int, title: str) -> JSONResponse:
    return JSONResponse(
        {"errors": [{"status": str(status_code), "title": title}]},
        status_code=status_code,
        media_type=JSONAPI_MEDIA_TYPE,
    )


async def _read_validation_set(request: Request) -> Optional[str]:
    """Return the optional ``validation-set`` of the request body.

    An empty body means no filter. Raises ``ValueError`` for a body that is
    not a JSON object or a set that is not a valid IRI.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    payload: Any = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("request body must be a JSON object")
    value = payload.get("validation-set")
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError("validation-set must be a string IRI")
    escape_uri(value)
    return value


class ExecutionsApi:
    """Route handlers bound to one ``ValidationService``."""

    def __init__(self, service: ValidationService) -> None:
        self.service = service

    async def create_execution(self, request: Request) -> Response:
        try:
            validation_set = await _read_validation_set(request)
        except ValueError as e:
            return _error_response(400, f"Invalid request body: {e}")

        try:
            execution = await self.service.trigger(validation_set)
        except PersistenceError as e:
            logger.error("Could not create execution: %s", e)
            return _error_response(500, "Could not create execution")

        return Response(status_code=202, headers={"Location": f"/executions/{execution.id}"})

    async def get_execution(self, request: Request) -> Response:
        execution_id = request.path_params["id"]
        try:
            execution = await self.service.executions.get_execution(execution_id)
        except NotFoundError:
            return Response(status_code=404)
        except PersistenceError as e:
            logger.error("Could not load execution %s: %s", execution_id, e)
            return _error_response(500, "Could not load execution")
        return JSONResponse(execution.to_jsonapi(), media_type=JSONAPI_MEDIA_TYPE)

    async def get_summary(self, request: Request) -> Response:
        execution_id = request.path_params["id"]
        try:
            summary = await self.service.executions.summarize_validations(execution_id)
        except NotFoundError:
            return Response(status_code=404)
        except PersistenceError as e:
            logger.error("Could not summarize execution %s: %s", execution_id, e)
            return _error_response(500, "Could not summarize execution")
        return JSONResponse(summary.to_jsonapi(), media_type=JSONAPI_MEDIA_TYPE)


def create_app(service: ValidationService) -> Starlette:
    """Create the ASGI application.

    Startup recovery runs in the lifespan, before the first request is
    served. Shutdown waits for running executions and closes the store.
    """
    api = ExecutionsApi(service)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[Dict[str, Any]]:
        await service.startup()
        try:
            yield {}
        finally:
            await service.aclose()

    routes = [
        Route("/executions", api.create_execution, methods=["POST"]),
        Route("/executions/{id}", api.get_execution, methods=["GET"]),
        Route("/executions/{id}/summary", api.get_summary, methods=["GET"]),
    ]
    app = Starlette(debug=False, routes=routes, lifespan=lifespan)
    app.state.service = service
    return app


__all__ = ["create_app", "ExecutionsApi"]
