"""
HTTP client for the remote daily production balance API.

Endpoints:
    GET  /api/daily-production-balances?from=&to=
    POST /api/daily-production-balances
    PUT  /api/daily-production-balances/{id}
    GET  /api/daily-production-balances/{id}/history
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import date
from typing import Any, TypeVar

import httpx
from loguru import logger

from ..core.exceptions import EntryNotFoundError, StoreError
from ..schemas.entries import DailyEntry, HistoryEntry
from .base import BalancePayload, BalanceStore
from .mapping import entry_from_remote, history_from_remote, payload_to_remote


BALANCES_PATH = "/api/daily-production-balances"

T = TypeVar("T")


class HttpBalanceStore(BalanceStore):
    """
    BalanceStore backed by the intranet REST API.

    Attributes:
        base_url: API root (e.g. http://localhost:4000)
        token: Optional bearer token sent on every request
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def list_range(self, start: date, end: date) -> list[DailyEntry]:
        data = await self._request(
            "GET",
            BALANCES_PATH,
            params={"from": start.isoformat(), "to": end.isoformat()},
        )
        return [_decode(entry_from_remote, item) for item in data.get("items", [])]

    async def create(self, payload: BalancePayload) -> DailyEntry:
        data = await self._request("POST", BALANCES_PATH, json=payload_to_remote(payload))
        return _decode(entry_from_remote, data.get("item"))

    async def update(self, entry_id: int, payload: BalancePayload) -> DailyEntry:
        data = await self._request(
            "PUT",
            f"{BALANCES_PATH}/{entry_id}",
            json=payload_to_remote(payload),
        )
        return _decode(entry_from_remote, data.get("item"))

    async def history(self, entry_id: int) -> list[HistoryEntry]:
        data = await self._request("GET", f"{BALANCES_PATH}/{entry_id}/history")
        return [
            _decode(lambda item: history_from_remote(item, balance_id=entry_id), item)
            for item in data.get("items", [])
        ]

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        client = await self._get_client()
        start_time = time.perf_counter()

        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise StoreError(
                message=f"Balance API timed out after {self.timeout}s",
                retryable=True,
            ) from e
        except httpx.ConnectError as e:
            raise StoreError(
                message=f"Failed to connect to balance API at {self.base_url}",
                retryable=True,
            ) from e
        except httpx.RequestError as e:
            raise StoreError(
                message=f"Balance API request failed: {e}",
                retryable=True,
            ) from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            message = _error_message(e.response)
            if status_code == 404:
                raise EntryNotFoundError(message) from e
            raise StoreError(
                message=message,
                status_code=status_code,
                retryable=status_code >= 500,
            ) from e
        except ValueError as e:
            raise StoreError(message="Balance API returned invalid JSON") from e

        logger.debug(
            "Balance API response",
            method=method,
            path=path,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

        if data.get("status") == "error":
            raise StoreError(message=data.get("message") or "Balance API error")
        return data


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"Balance API returned error: {response.status_code}"


def _decode(build: Callable[[dict[str, Any]], T], item: Any) -> T:
    try:
        return build(item)
    except (KeyError, TypeError, ValueError) as e:
        raise StoreError(message="Balance API returned an unexpected item") from e
