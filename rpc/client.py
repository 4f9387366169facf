"""
Typed asynchronous JSON-RPC 2.0 client shared by both chain readers.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, List, Optional

import backoff
import httpx

log = logging.getLogger("rpc.client")


class RpcError(RuntimeError):
    """The node answered with a JSON-RPC error object or a malformed envelope."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message if code is None else f"[{code}] {message}")
        self.code = code


class JsonRpcClient:
    """
    Minimal wrapper around httpx.AsyncClient with automatic retries on
    connection-level failures.
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        url: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,  # injectable for tests
    ):
        self.url: str = str(url)
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    # ────────────────────────────────────────────────────────
    # Public endpoint
    # ────────────────────────────────────────────────────────
    @backoff.on_exception(
        backoff.expo, httpx.TransportError, max_tries=3, jitter=None, factor=2
    )
    async def request(self, method: str, params: List[Any] | None = None) -> Any:
        """
        POST one JSON-RPC call and return its ``result`` member.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        response = await self._client.post(self.url, json=payload)
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise RpcError(f"{method}: response is not JSON") from e
        if not isinstance(data, dict):
            raise RpcError(f"{method}: expected a JSON object, got {type(data).__name__}")

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                raise RpcError(f"{method}: {error.get('message', error)}", error.get("code"))
            raise RpcError(f"{method}: {error}")

        log.debug("%s %s -> %.80s", method, params, data.get("result"))
        return data.get("result")

    # ────────────────────────────────────────────────────────
    # Context manager helpers
    # ────────────────────────────────────────────────────────
    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "JsonRpcClient":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:  # noqa: D401
        await self.aclose()
