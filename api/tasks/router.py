"""
v1 HTTP transport for tasks.

A single catch-all route under `/v1/tasks/` dispatches on method and path:

- GET    /v1/tasks/       -> fetch
- GET    /v1/tasks/{id}   -> fetch_by_id
- POST   /v1/tasks/       -> store
- PATCH  /v1/tasks/{id}   -> patch
- PUT    /v1/tasks/{id}   -> patch (same as PATCH)
- DELETE /v1/tasks/{id}   -> destroy_by_id

This is the only layer that turns errors into status codes.
"""

from __future__ import annotations

import logging
import time

import pydantic
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, Response

from core import logs
from core.errors import InvalidPathError, TaskError
from core.logs import Log

from . import schemas
from .service import TaskService

V1_HTTP_ENDPOINT = "/v1/tasks/"

ROUTED_METHODS = ["GET", "POST", "PATCH", "PUT", "DELETE"]

logger = logging.getLogger(__name__)


def extract_id(path: str) -> str:
    """
    Return the task id following the collection prefix in `path`.
    """
    if not path.startswith(V1_HTTP_ENDPOINT):
        raise InvalidPathError("invalid path")

    task_id = path[len(V1_HTTP_ENDPOINT):]
    if not task_id:
        raise InvalidPathError("invalid path")
    return task_id


def _error_response(exc: Exception, fallback_status: int) -> JSONResponse:
    status_code = getattr(exc, "status_code", None) or fallback_status
    body = schemas.ErrorResponse(error=str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _decode_error_message(exc: pydantic.ValidationError) -> str:
    return "; ".join(str(err.get("msg", "")) for err in exc.errors()) or str(exc)


class TaskTransport:
    def __init__(self, service: TaskService) -> None:
        self._svc = service
        self.router = APIRouter()
        self.router.add_api_route(
            V1_HTTP_ENDPOINT + "{path:path}",
            self.route,
            methods=ROUTED_METHODS,
            include_in_schema=False,
        )

    async def route(self, request: Request) -> Response:
        log = logs.request_logger(logger)
        started = time.perf_counter()
        try:
            method = request.method
            if method == "GET":
                if request.url.path == V1_HTTP_ENDPOINT:
                    return await self.fetch(request, log)
                return await self.fetch_by_id(request, log)
            if method == "POST":
                return await self.store(request, log)
            if method in ("PATCH", "PUT"):
                return await self.patch(request, log)
            # Starlette answers 405 for anything outside ROUTED_METHODS.
            return await self.destroy_by_id(request, log)
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            log.info("%s %s %.3fms", request.method, request.url.path, elapsed_ms)

    async def fetch(self, request: Request, log: Log) -> Response:
        try:
            tasks = await self._svc.fetch(log=log)
        except TaskError as exc:
            log.error("%s", exc)
            return _error_response(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)

        body = [schemas.TaskResponse.from_task(t).to_wire() for t in tasks]
        return JSONResponse(status_code=status.HTTP_200_OK, content=body)

    async def fetch_by_id(self, request: Request, log: Log) -> Response:
        try:
            task_id = extract_id(request.url.path)
            task = await self._svc.fetch_by_id(task_id, log=log)
        except TaskError as exc:
            log.info("%s", exc)
            return _error_response(exc, status.HTTP_404_NOT_FOUND)

        body = schemas.TaskResponse.from_task(task).to_wire()
        return JSONResponse(status_code=status.HTTP_200_OK, content=body)

    async def store(self, request: Request, log: Log) -> Response:
        try:
            payload = schemas.TaskStoreRequest.model_validate_json(await request.body())
        except pydantic.ValidationError as exc:
            log.info("invalid store body: %s", exc)
            return _error_response(RuntimeError(_decode_error_message(exc)), status.HTTP_400_BAD_REQUEST)

        try:
            stored = await self._svc.store(payload.name, log=log)
        except TaskError as exc:
            log.error("%s", exc)
            return _error_response(exc, status.HTTP_500_INTERNAL_SERVER_ERROR)

        body = schemas.TaskResponse.from_task(stored).to_wire()
        return JSONResponse(status_code=status.HTTP_201_CREATED, content=body)

    async def patch(self, request: Request, log: Log) -> Response:
        try:
            task_id = extract_id(request.url.path)
        except InvalidPathError as exc:
            log.info("%s", exc)
            return _error_response(exc, status.HTTP_404_NOT_FOUND)

        try:
            payload = schemas.TaskPatchRequest.model_validate_json(await request.body())
        except pydantic.ValidationError as exc:
            log.info("invalid patch body: %s", exc)
            return _error_response(RuntimeError(_decode_error_message(exc)), status.HTTP_400_BAD_REQUEST)

        try:
            patched = await self._svc.patch(payload.to_spec(task_id), log=log)
        except TaskError as exc:
            log.info("%s", exc)
            return _error_response(exc, status.HTTP_400_BAD_REQUEST)

        body = schemas.TaskResponse.from_task(patched).to_wire()
        return JSONResponse(status_code=status.HTTP_200_OK, content=body)

    async def destroy_by_id(self, request: Request, log: Log) -> Response:
        try:
            task_id = extract_id(request.url.path)
            await self._svc.destroy_by_id(task_id, log=log)
        except TaskError as exc:
            log.info("%s", exc)
            return _error_response(exc, status.HTTP_404_NOT_FOUND)

        return Response(status_code=status.HTTP_204_NO_CONTENT, media_type="application/json")
