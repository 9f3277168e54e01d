"""Minimal async JSON-RPC client for an Ethereum node, built on httpx."""

from __future__ import annotations

import itertools
import logging
from typing import Any

import httpx

from stormint.errors import NetworkFailureError, SubmissionTimeoutError

log = logging.getLogger(__name__)


class RpcError(Exception):
    """The node answered with a JSON-RPC ``error`` object."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"[{code}] {message}")


class JsonRpcClient:
    """One short-lived HTTP session against a single endpoint.

    Use as an async context manager; nothing survives past ``__aexit__``:

        async with JsonRpcClient(endpoint) as rpc:
            block = await rpc.request("eth_blockNumber")
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = timeout
        self._transport = transport
        self._ids = itertools.count(1)
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> JsonRpcClient:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout, connect=10),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(self, method: str, params: list | None = None) -> Any:
        """Send one JSON-RPC call and return its ``result``.

        Raises RpcError for node-level errors, SubmissionTimeoutError for
        HTTP timeouts and NetworkFailureError for any other transport problem.
        """
        if self._client is None:
            raise RuntimeError("JsonRpcClient used outside of 'async with'")

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        log.debug("-> %s %s", method, payload["params"])

        try:
            resp = await self._client.post(self._endpoint, json=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.TimeoutException as exc:
            raise SubmissionTimeoutError(f"{method} timed out after {self._timeout}s") from exc
        except httpx.HTTPStatusError as exc:
            raise NetworkFailureError(
                f"{method}: HTTP {exc.response.status_code} from {self._endpoint}"
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkFailureError(f"{method}: {exc}") from exc
        except ValueError as exc:
            raise NetworkFailureError(f"{method}: malformed JSON response") from exc

        if not isinstance(body, dict):
            raise NetworkFailureError(f"{method}: unexpected response {body!r}")
        if err := body.get("error"):
            if not isinstance(err, dict):
                raise NetworkFailureError(f"{method}: {err}")
            raise RpcError(err.get("code", 0), err.get("message", ""), err.get("data"))
        return body.get("result")
