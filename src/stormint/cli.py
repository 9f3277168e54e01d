"""CLI entry point for stormint."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click
from eth_utils import from_wei

from stormint.account import derive_identities, identity_from_key
from stormint.config import load_config, parse_ether
from stormint.distributor import BatchDistributor, transfer_instructions
from stormint.errors import StormintError
from stormint.ledger import ContractInterface, EvmTransactionSubmitter
from stormint.mint import ConcurrentMintExecutor, summarize
from stormint.models import SigningIdentity, StormintConfig, SubmissionOutcome


def _eth(wei: int) -> str:
    return f"{from_wei(wei, 'ether')} ETH"


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _require_mnemonic(cfg: StormintConfig) -> None:
    """Exit with error if no mnemonic is configured."""
    if not cfg.mnemonic:
        click.echo("Error: No mnemonic configured.", err=True)
        click.echo("Set STORMINT_MNEMONIC env var or [account] mnemonic in config.", err=True)
        sys.exit(1)


def _require_contract(address: str, artifact_path: str, section: str) -> ContractInterface:
    """Exit with error unless the contract address and artifact are configured."""
    if not address:
        _fail(f"No contract address configured in [{section}].")
    if not artifact_path:
        _fail(f"No artifact_path configured in [{section}].")
    try:
        return ContractInterface.from_file(artifact_path)
    except (OSError, ValueError) as exc:
        _fail(f"Cannot load interface from {artifact_path}: {exc}")


def _submitter(cfg: StormintConfig) -> EvmTransactionSubmitter:
    return EvmTransactionSubmitter(
        confirmation_timeout=cfg.confirmation_timeout,
        poll_interval=cfg.poll_interval,
        request_timeout=cfg.request_timeout,
    )


class _BarObserver:
    """ProgressObserver that drives a click progress bar."""

    def __init__(self, bar) -> None:
        self._bar = bar
        self._shown = 0

    def advance(self, completed: int, total: int) -> None:
        self._bar.update(completed - self._shown)
        self._shown = completed


def _derive(cfg: StormintConfig) -> list[SigningIdentity]:
    """Derive the configured range, exiting on a bad seed or range."""
    total = max(cfg.end_index - cfg.start_index, 0)
    try:
        with click.progressbar(length=total, label="Deriving accounts", file=sys.stderr) as bar:
            return derive_identities(
                cfg.mnemonic, cfg.start_index, cfg.end_index, observer=_BarObserver(bar),
            )
    except (StormintError, ValueError) as exc:
        _fail(str(exc))


def _report(identities: list[SigningIdentity], outcomes: list[SubmissionOutcome]) -> bool:
    """Print one line per outcome plus a summary. Returns True if all succeeded."""
    for identity, outcome in zip(identities, outcomes):
        if outcome.ok:
            click.echo(f"  [{identity.index}] {outcome.actor}  ok      tx={outcome.tx_hash}")
        else:
            click.echo(
                f"  [{identity.index}] {outcome.actor}  FAILED  "
                f"{outcome.error_kind}: {outcome.error}"
            )

    summary = summarize(outcomes)
    click.echo("")
    click.echo(f"Succeeded: {summary.succeeded}/{summary.total}")
    for kind, count in sorted(summary.failures_by_kind.items()):
        click.echo(f"  {kind}: {count}")
    return summary.failed == 0


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """stormint - derive accounts, fund them in one transaction, mint concurrently."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, load_config(config_path).log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the effective configuration."""
    cfg = load_config(ctx.obj["config_path"])
    click.echo(f"RPC URL:      {cfg.rpc_url}")
    click.echo(f"Mnemonic:     {'***configured***' if cfg.mnemonic else '(not set)'}")
    click.echo(f"Range:        [{cfg.start_index}, {cfg.end_index})")
    click.echo(f"Mint:         {cfg.mint_contract or '(not set)'} {cfg.mint_function}()")
    click.echo(f"Mint value:   {_eth(cfg.mint_value)}")
    click.echo(f"Distributor:  {cfg.distributor_contract or '(not set)'} {cfg.distribute_function}()")
    click.echo(f"Each amount:  {_eth(cfg.each_amount)}")
    click.echo(f"Sender key:   {'***configured***' if cfg.sender_private_key else '(not set)'}")
    click.echo(f"Concurrency:  {cfg.max_concurrency or 'unbounded'}")
    click.echo(f"Timeout:      {cfg.confirmation_timeout or 'none'}")


@cli.command()
@click.pass_context
def derive(ctx: click.Context) -> None:
    """Print the addresses derived from the configured mnemonic and range."""
    cfg = load_config(ctx.obj["config_path"])
    _require_mnemonic(cfg)
    identities = _derive(cfg)
    for identity in identities:
        click.echo(f"{identity.index:>6}  {identity.address}")


# ── Transactions ───────────────────────────────────────


async def _distribute(
    cfg: StormintConfig,
    interface: ContractInterface,
    identities: list[SigningIdentity],
    each_amount: int,
) -> None:
    sender = identity_from_key(cfg.sender_private_key)
    distributor = BatchDistributor(_submitter(cfg), function_name=cfg.distribute_function)
    instructions = transfer_instructions((i.address for i in identities), each_amount)
    reference = await distributor.distribute(
        sender, cfg.rpc_url, interface, cfg.distributor_contract, instructions,
    )
    click.echo(f"Distributed in block {reference.block_number} (tx={reference.tx_hash})")


async def _mint(
    cfg: StormintConfig,
    interface: ContractInterface,
    identities: list[SigningIdentity],
    function_name: str,
    value: int,
) -> list[SubmissionOutcome]:
    with click.progressbar(length=len(identities), label="Minting", file=sys.stderr) as bar:
        executor = ConcurrentMintExecutor(
            _submitter(cfg),
            max_concurrency=cfg.max_concurrency,
            observer=_BarObserver(bar),
        )
        return await executor.run_batch(
            identities, cfg.rpc_url, interface, cfg.mint_contract, function_name, (), value,
        )


@cli.command()
@click.option("--each", "each", default=None, help="Ether sent to every account (overrides config)")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def distribute(ctx: click.Context, each: str | None, yes: bool) -> None:
    """Fund every derived account in one aggregated transaction."""
    cfg = load_config(ctx.obj["config_path"])
    _require_mnemonic(cfg)
    if not cfg.sender_private_key:
        _fail("No sender key configured. Set STORMINT_SENDER_KEY.")
    interface = _require_contract(
        cfg.distributor_contract, cfg.distributor_artifact_path, "distributor",
    )
    each_amount = parse_ether(each) if each is not None else cfg.each_amount

    try:
        identities = _derive(cfg)
        if not identities:
            click.echo("Nothing to distribute: empty account range.")
            return
        total = each_amount * len(identities)
        click.echo(f"Sending {_eth(each_amount)} to {len(identities)} accounts ({_eth(total)} total)")
        if not yes:
            click.confirm("Proceed?", abort=True)
        asyncio.run(_distribute(cfg, interface, identities, each_amount))
    except StormintError as exc:
        _fail(f"{exc.kind}: {exc}")


@cli.command()
@click.option("--function", "function_name", default=None, help="Contract function (default from config)")
@click.option("--value", default=None, help="Ether attached to every call")
@click.pass_context
def mint(ctx: click.Context, function_name: str | None, value: str | None) -> None:
    """Call the mint function once from every derived account, concurrently."""
    cfg = load_config(ctx.obj["config_path"])
    _require_mnemonic(cfg)
    interface = _require_contract(cfg.mint_contract, cfg.mint_artifact_path, "mint")
    wei = parse_ether(value) if value is not None else cfg.mint_value

    try:
        identities = _derive(cfg)
        outcomes = asyncio.run(
            _mint(cfg, interface, identities, function_name or cfg.mint_function, wei)
        )
    except StormintError as exc:
        _fail(f"{exc.kind}: {exc}")

    if not _report(identities, outcomes):
        sys.exit(1)


@cli.command()
@click.argument("function_name")
@click.option("--args", "args_json", default="[]", help="Arguments as a JSON list")
@click.option("--distributor", is_flag=True, help="Query the distributor instead of the mint contract")
@click.pass_context
def query(ctx: click.Context, function_name: str, args_json: str, distributor: bool) -> None:
    """Run a read-only contract call and print the decoded result."""
    cfg = load_config(ctx.obj["config_path"])
    if distributor:
        address, artifact, section = (
            cfg.distributor_contract, cfg.distributor_artifact_path, "distributor",
        )
    else:
        address, artifact, section = cfg.mint_contract, cfg.mint_artifact_path, "mint"
    interface = _require_contract(address, artifact, section)

    try:
        args = json.loads(args_json)
    except json.JSONDecodeError as exc:
        _fail(f"--args is not valid JSON: {exc}")
    if not isinstance(args, list):
        _fail("--args must be a JSON list")

    try:
        values = asyncio.run(
            _submitter(cfg).query(cfg.rpc_url, interface, address, function_name, args)
        )
    except StormintError as exc:
        _fail(f"{exc.kind}: {exc}")

    for value in values:
        click.echo(value.hex() if isinstance(value, bytes) else str(value))


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def run(ctx: click.Context, yes: bool) -> None:
    """Derive, fund (if a distributor is configured), then mint."""
    cfg = load_config(ctx.obj["config_path"])
    _require_mnemonic(cfg)
    mint_interface = _require_contract(cfg.mint_contract, cfg.mint_artifact_path, "mint")
    fund = bool(cfg.distributor_contract and cfg.each_amount and cfg.sender_private_key)
    dist_interface = None
    if fund:
        dist_interface = _require_contract(
            cfg.distributor_contract, cfg.distributor_artifact_path, "distributor",
        )

    try:
        identities = _derive(cfg)
        if not identities:
            click.echo("Nothing to do: empty account range.")
            return
        if fund:
            click.echo(f"Funding {len(identities)} accounts with {_eth(cfg.each_amount)} each")
            if not yes:
                click.confirm("Proceed?", abort=True)
            asyncio.run(_distribute(cfg, dist_interface, identities, cfg.each_amount))
        outcomes = asyncio.run(
            _mint(cfg, mint_interface, identities, cfg.mint_function, cfg.mint_value)
        )
    except StormintError as exc:
        _fail(f"{exc.kind}: {exc}")

    if not _report(identities, outcomes):
        sys.exit(1)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
