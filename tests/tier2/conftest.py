"""Tier 2 fixtures: a real local anvil node."""

from __future__ import annotations

import os

import httpx
import pytest

ANVIL_RPC_URL = os.environ.get("ANVIL_RPC_URL", "http://127.0.0.1:8545")


@pytest.fixture(scope="session")
def anvil_url():
    """Check if a local anvil node is running. Skip tier2 tests if not."""
    try:
        r = httpx.post(
            ANVIL_RPC_URL,
            json={"jsonrpc": "2.0", "id": 1, "method": "eth_chainId", "params": []},
            timeout=3,
        )
        if r.status_code == 200 and "result" in r.json():
            return ANVIL_RPC_URL
        pytest.skip(f"anvil not available at {ANVIL_RPC_URL}")
    except (httpx.ConnectError, httpx.TimeoutException):
        pytest.skip(f"anvil not available at {ANVIL_RPC_URL}")
