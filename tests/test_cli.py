"""CLI commands, offline and against the fake JSON-RPC node."""

from __future__ import annotations

import asyncio

import pytest
from click.testing import CliRunner

from stormint.cli import cli

from tests.conftest import (
    ADDRESS_0,
    ADDRESS_1,
    ADDRESS_2,
    DISTRIBUTOR_CONTRACT,
    MINT_CONTRACT,
    PRIVATE_KEY_0,
    TEST_MNEMONIC,
)
from tests.factories import DISTRIBUTOR_ABI, FREE_MINT_ABI, write_artifact


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("RPC_URL", "MNEMONIC", "SENDER_KEY", "MAX_CONCURRENCY"):
        monkeypatch.delenv(f"STORMINT_{name}", raising=False)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "stormint.toml"
    path.write_text("[account]\nstart_index = 0\nend_index = 3\n")
    return path


def test_status_masks_secrets(runner, config_file):
    result = runner.invoke(
        cli, ["-c", str(config_file), "status"],
        env={"STORMINT_MNEMONIC": TEST_MNEMONIC, "STORMINT_SENDER_KEY": "0xdeadbeef"},
        obj={},
    )
    assert result.exit_code == 0
    assert "***configured***" in result.output
    assert TEST_MNEMONIC not in result.output
    assert "deadbeef" not in result.output
    assert "[0, 3)" in result.output


def test_derive_prints_addresses(runner, config_file):
    result = runner.invoke(
        cli, ["-c", str(config_file), "derive"],
        env={"STORMINT_MNEMONIC": TEST_MNEMONIC},
        obj={},
    )
    assert result.exit_code == 0
    for address in (ADDRESS_0, ADDRESS_1, ADDRESS_2):
        assert address in result.output


def test_derive_without_mnemonic(runner, config_file):
    result = runner.invoke(cli, ["-c", str(config_file), "derive"], obj={})
    assert result.exit_code == 1
    assert "No mnemonic configured" in result.output


def test_derive_bad_seed(runner, config_file):
    result = runner.invoke(
        cli, ["-c", str(config_file), "derive"],
        env={"STORMINT_MNEMONIC": "invalid mnemonic phrase"},
        obj={},
    )
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_mint_without_contract(runner, config_file):
    result = runner.invoke(
        cli, ["-c", str(config_file), "mint"],
        env={"STORMINT_MNEMONIC": TEST_MNEMONIC},
        obj={},
    )
    assert result.exit_code == 1
    assert "No contract address configured in [mint]" in result.output


def test_distribute_without_sender_key(runner, tmp_path):
    artifact = write_artifact(tmp_path, "Distributor", FREE_MINT_ABI)
    path = tmp_path / "stormint.toml"
    path.write_text(
        "[distributor]\n"
        'contract_address = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"\n'
        f'artifact_path = "{artifact.as_posix()}"\n'
    )
    result = runner.invoke(
        cli, ["-c", str(path), "distribute", "--yes"],
        env={"STORMINT_MNEMONIC": TEST_MNEMONIC},
        obj={},
    )
    assert result.exit_code == 1
    assert "No sender key configured" in result.output


def test_query_rejects_non_list_args(runner, tmp_path):
    artifact = write_artifact(tmp_path, "FreeMint", FREE_MINT_ABI)
    path = tmp_path / "stormint.toml"
    path.write_text(
        "[mint]\n"
        'contract_address = "0x5FbDB2315678afecb367f032d93F642f64180aa3"\n'
        f'artifact_path = "{artifact.as_posix()}"\n'
    )
    result = runner.invoke(
        cli, ["-c", str(path), "query", "balanceOf", "--args", '{"a": 1}'], obj={},
    )
    assert result.exit_code == 1
    assert "--args must be a JSON list" in result.output


# ── Against the fake node ─────────────────────────────────────────


@pytest.fixture
def node_config(tmp_path):
    """Config with both contracts, three accounts and fast receipt polling."""
    mint_artifact = write_artifact(tmp_path, "FreeMint", FREE_MINT_ABI)
    dist_artifact = write_artifact(tmp_path, "Distributor", DISTRIBUTOR_ABI)
    path = tmp_path / "node.toml"
    path.write_text(
        "[account]\nstart_index = 0\nend_index = 3\n"
        f'[mint]\ncontract_address = "{MINT_CONTRACT}"\n'
        f'artifact_path = "{mint_artifact.as_posix()}"\n'
        f'[distributor]\ncontract_address = "{DISTRIBUTOR_CONTRACT}"\n'
        f'artifact_path = "{dist_artifact.as_posix()}"\n'
        'each_amount = "0.01"\n'
        "[executor]\nconfirmation_timeout = 5\npoll_interval = 0.01\n"
    )
    return path


async def _invoke(runner, args, node, **kwargs):
    """Run the CLI in a worker thread so the node keeps serving on this loop."""
    env = {
        "STORMINT_RPC_URL": node.url,
        "STORMINT_MNEMONIC": TEST_MNEMONIC,
        "STORMINT_SENDER_KEY": PRIVATE_KEY_0,
    }
    return await asyncio.to_thread(runner.invoke, cli, args, env=env, obj={}, **kwargs)


async def test_mint_all_succeed(runner, node_config, fake_node):
    result = await _invoke(runner, ["-c", str(node_config), "mint"], fake_node)
    assert result.exit_code == 0, result.output
    assert "Succeeded: 3/3" in result.output
    for address in (ADDRESS_0, ADDRESS_1, ADDRESS_2):
        assert f"{address}  ok" in result.output
    assert len(fake_node.sent) == 3


async def test_mint_reverts_exit_nonzero(runner, node_config, fake_node):
    fake_node.errors["eth_estimateGas"] = {"code": 3, "message": "execution reverted: sold out"}
    result = await _invoke(runner, ["-c", str(node_config), "mint"], fake_node)
    assert result.exit_code == 1
    assert "Succeeded: 0/3" in result.output
    assert "reverted: 3" in result.output
    assert result.output.count("FAILED") == 3
    assert fake_node.sent == []


async def test_distribute_sends_one_transaction(runner, node_config, fake_node):
    result = await _invoke(runner, ["-c", str(node_config), "distribute", "--yes"], fake_node)
    assert result.exit_code == 0, result.output
    assert "to 3 accounts" in result.output
    assert f"block {fake_node.block_number}" in result.output
    assert len(fake_node.sent) == 1
    estimate = fake_node.params_of("eth_estimateGas")[0][0]
    assert estimate["value"] == hex(3 * 10**16)


async def test_distribute_declined_sends_nothing(runner, node_config, fake_node):
    result = await _invoke(
        runner, ["-c", str(node_config), "distribute"], fake_node, input="n\n",
    )
    assert result.exit_code == 1
    assert "Proceed?" in result.output
    assert fake_node.calls == []


async def test_distribute_empty_range_skips(runner, node_config, fake_node):
    node_config.write_text(node_config.read_text().replace("end_index = 3", "end_index = 0"))
    result = await _invoke(runner, ["-c", str(node_config), "distribute", "--yes"], fake_node)
    assert result.exit_code == 0
    assert "Nothing to distribute" in result.output
    assert fake_node.calls == []


async def test_run_funds_then_mints(runner, node_config, fake_node):
    result = await _invoke(runner, ["-c", str(node_config), "run", "--yes"], fake_node)
    assert result.exit_code == 0, result.output
    assert "Funding 3 accounts" in result.output
    assert "Succeeded: 3/3" in result.output
    # one distribution plus one mint per account
    assert len(fake_node.sent) == 4
