"""
Async HTTP client for the v1 tasks API.

Used by the `taskd fetch` / `taskd store` commands to poke a running server.
"""

from __future__ import annotations

from typing import Any

import httpx

from .router import V1_HTTP_ENDPOINT


class TaskClientError(RuntimeError):
    pass


def _normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise TaskClientError("TASKS_API_URL is empty.")
    return base_url.rstrip("/")


def _check(resp: httpx.Response, expected: int) -> Any:
    if resp.status_code != expected:
        # Avoid dumping huge bodies; include a small snippet.
        body = resp.text[:500]
        raise TaskClientError(f"Tasks API request failed: {resp.status_code} {body}")
    return resp.json()


async def fetch_tasks(
    *,
    base_url: str,
    timeout_s: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[dict[str, Any]]:
    """
    GET /v1/tasks/ and return the decoded list.
    """
    base_url = _normalize_base_url(base_url)
    async with httpx.AsyncClient(base_url=base_url, timeout=timeout_s, transport=transport) as client:
        resp = await client.get(V1_HTTP_ENDPOINT)
    return _check(resp, 200)


async def store_task(
    *,
    base_url: str,
    name: str,
    timeout_s: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """
    POST /v1/tasks/ with `name` and return the created task.
    """
    base_url = _normalize_base_url(base_url)
    name = (name or "").strip()
    if not name:
        raise TaskClientError("Task name is empty.")

    async with httpx.AsyncClient(base_url=base_url, timeout=timeout_s, transport=transport) as client:
        resp = await client.post(V1_HTTP_ENDPOINT, json={"name": name})
    return _check(resp, 201)
