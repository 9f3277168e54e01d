"""Configuration models for the stormint CLI."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class StormintConfig:
    """Complete runtime configuration."""

    # Network
    rpc_url: str = "http://127.0.0.1:8545"
    request_timeout: float = 30.0  # seconds per JSON-RPC request

    # Account derivation
    mnemonic: str = ""  # loaded from env var STORMINT_MNEMONIC
    start_index: int = 0
    end_index: int = 10

    # Mint target
    mint_contract: str = ""
    mint_artifact_path: str = ""
    mint_function: str = "mint"
    mint_value: int = 0  # wei attached to every mint call

    # Distributor
    distributor_contract: str = ""
    distributor_artifact_path: str = ""
    distribute_function: str = "distributeEther"
    each_amount: int = 0  # wei sent to every derived account
    sender_private_key: str = ""  # loaded from env var STORMINT_SENDER_KEY

    # Executor
    max_concurrency: int | None = None  # None = one task per identity
    confirmation_timeout: float | None = None  # None = wait indefinitely
    poll_interval: float = 1.0

    log_level: str = "info"
