"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from eth_utils import to_wei

from stormint.models.config import StormintConfig


def parse_ether(amount: str | int | float) -> int:
    """Convert an ether amount ("0.01", 1) to wei. Ints are taken as ether."""
    return int(to_wei(Decimal(str(amount)), "ether"))


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "STORMINT_",
) -> StormintConfig:
    """Load configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (STORMINT_MNEMONIC, STORMINT_SENDER_KEY, ...)
        2. TOML config file
        3. Defaults from StormintConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = StormintConfig()

    # ── Network section ────────────────────────────────────
    network = raw.get("network", {})
    if v := network.get("rpc_url"):
        cfg.rpc_url = str(v)
    if v := network.get("request_timeout"):
        cfg.request_timeout = float(v)

    # ── Account section ────────────────────────────────────
    account = raw.get("account", {})
    if v := account.get("mnemonic"):
        cfg.mnemonic = str(v)
    if (v := account.get("start_index")) is not None:
        cfg.start_index = int(v)
    if (v := account.get("end_index")) is not None:
        cfg.end_index = int(v)

    # ── Mint section ───────────────────────────────────────
    mint = raw.get("mint", {})
    if v := mint.get("contract_address"):
        cfg.mint_contract = str(v)
    if v := mint.get("artifact_path"):
        cfg.mint_artifact_path = str(v)
    if v := mint.get("function"):
        cfg.mint_function = str(v)
    if v := mint.get("value"):
        cfg.mint_value = parse_ether(v)

    # ── Distributor section ────────────────────────────────
    distributor = raw.get("distributor", {})
    if v := distributor.get("contract_address"):
        cfg.distributor_contract = str(v)
    if v := distributor.get("artifact_path"):
        cfg.distributor_artifact_path = str(v)
    if v := distributor.get("function"):
        cfg.distribute_function = str(v)
    if v := distributor.get("each_amount"):
        cfg.each_amount = parse_ether(v)
    if v := distributor.get("sender_private_key"):
        cfg.sender_private_key = str(v)

    # ── Executor section ───────────────────────────────────
    executor = raw.get("executor", {})
    if v := executor.get("max_concurrency"):
        cfg.max_concurrency = int(v)
    if v := executor.get("confirmation_timeout"):
        cfg.confirmation_timeout = float(v)
    if v := executor.get("poll_interval"):
        cfg.poll_interval = float(v)

    if v := raw.get("logging", {}).get("log_level"):
        cfg.log_level = str(v)

    # ── Environment variable overrides (highest priority) ──
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.rpc_url = rpc
    if mnemonic := os.environ.get(f"{env_prefix}MNEMONIC"):
        cfg.mnemonic = mnemonic
    if key := os.environ.get(f"{env_prefix}SENDER_KEY"):
        cfg.sender_private_key = key
    if conc := os.environ.get(f"{env_prefix}MAX_CONCURRENCY"):
        cfg.max_concurrency = int(conc)

    # Expand ~ in paths
    if cfg.mint_artifact_path:
        cfg.mint_artifact_path = str(Path(cfg.mint_artifact_path).expanduser())
    if cfg.distributor_artifact_path:
        cfg.distributor_artifact_path = str(Path(cfg.distributor_artifact_path).expanduser())

    return cfg
