"""Shared fixtures for stormint tests."""

from __future__ import annotations

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from pytest_metadata.plugin import metadata_key

from stormint.account import derive_identities
from stormint.ledger import EvmTransactionSubmitter
from stormint.models.config import StormintConfig

from tests.factories import distributor_interface, free_mint_interface
from tests.mocks import FakeNode, MockObserver, MockSubmitter

TEST_MNEMONIC = "test test test test test test test test test test test junk"

# Well-known accounts of the test mnemonic (m/44'/60'/0'/0/i)
ADDRESS_0 = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
ADDRESS_1 = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
ADDRESS_2 = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
PRIVATE_KEY_0 = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"

MINT_CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
DISTRIBUTOR_CONTRACT = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
TEST_ENDPOINT = "http://127.0.0.1:8545"


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add chain info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Chain"] = "fake JSON-RPC node / local anvil (31337)"
    meta["Mnemonic"] = TEST_MNEMONIC
    meta["Mint Contract"] = MINT_CONTRACT
    meta["Distributor Contract"] = DISTRIBUTOR_CONTRACT


def pytest_html_results_summary(prefix, summary, postfix):
    """List the well-known test accounts in the report summary."""
    rows = "<br/>".join(
        f"[{i}] {address}" for i, address in enumerate((ADDRESS_0, ADDRESS_1, ADDRESS_2))
    )
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Test accounts (m/44'/60'/0'/0/i)</strong><br/>"
        f"{rows}<br/>"
        f"Mint: {MINT_CONTRACT}<br/>"
        f"Distributor: {DISTRIBUTOR_CONTRACT}"
        "</div>"
    )


def make_test_config(**overrides) -> StormintConfig:
    """Build a StormintConfig suitable for testing."""
    defaults = dict(
        rpc_url=TEST_ENDPOINT,
        mnemonic=TEST_MNEMONIC,
        start_index=0,
        end_index=3,
        mint_contract=MINT_CONTRACT,
        distributor_contract=DISTRIBUTOR_CONTRACT,
        sender_private_key=PRIVATE_KEY_0,
        confirmation_timeout=5.0,
        poll_interval=0.01,
    )
    defaults.update(overrides)
    return StormintConfig(**defaults)


@pytest.fixture(scope="session")
def identities():
    """First five identities of the test mnemonic."""
    return derive_identities(TEST_MNEMONIC, 0, 5)


@pytest.fixture
def test_config():
    return make_test_config()


@pytest.fixture
def mint_interface():
    return free_mint_interface()


@pytest.fixture
def dist_interface():
    return distributor_interface()


@pytest.fixture
def mock_submitter():
    return MockSubmitter()


@pytest.fixture
def mock_observer():
    return MockObserver()


@pytest.fixture
async def fake_node():
    """FakeNode served on a free local port; ``fake_node.url`` is its endpoint."""
    node = FakeNode()
    app = web.Application()
    app.router.add_post("/", node.handle)
    server = TestServer(app)
    await server.start_server()
    node.url = str(server.make_url("/"))
    yield node
    await server.close()


@pytest.fixture
def submitter():
    """Real submitter tuned for fast polling against FakeNode."""
    return EvmTransactionSubmitter(confirmation_timeout=5.0, poll_interval=0.01)
