"""Concurrent mint executor - one submission per identity, failures isolated."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Sequence

import httpx
from eth_utils import to_checksum_address

from stormint.errors import (
    ArgumentMismatchError,
    InvalidFunctionError,
    SetupError,
    SubmissionError,
)
from stormint.interfaces.observer import ProgressObserver
from stormint.interfaces.submitter import TransactionSubmitter
from stormint.ledger.abi import ContractInterface
from stormint.models.records import BatchSummary, SigningIdentity, SubmissionOutcome

log = logging.getLogger(__name__)

DEFAULT_FUNCTION = "mint"


class ConcurrentMintExecutor:
    """Fans a single contract call out across many identities.

    Each identity's submission runs as its own task. A failed submission is
    recorded in that identity's outcome and never affects the others; the
    returned outcomes follow the input order, not completion order.
    """

    def __init__(
        self,
        submitter: TransactionSubmitter,
        *,
        max_concurrency: int | None = None,
        observer: ProgressObserver | None = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._submitter = submitter
        self._max_concurrency = max_concurrency
        self._observer = observer

    async def run_batch(
        self,
        identities: Sequence[SigningIdentity],
        endpoint: str,
        interface: ContractInterface,
        target: str,
        function_name: str | None = None,
        args: Sequence[Any] | None = None,
        value: int | None = None,
    ) -> list[SubmissionOutcome]:
        """Submit ``function_name(args)`` once per identity, concurrently.

        Raises SetupError before any submission if the batch-level inputs
        are malformed. Otherwise returns exactly one outcome per identity.
        """
        function_name = function_name or DEFAULT_FUNCTION
        args = tuple(args or ())
        _validate_setup(endpoint, interface, target, function_name, args, value)

        total = len(identities)
        if total == 0:
            return []

        log.info(
            "Running %s across %d identities (max_concurrency=%s)",
            function_name, total, self._max_concurrency or "unbounded",
        )

        limiter = (
            asyncio.Semaphore(self._max_concurrency)
            if self._max_concurrency
            else contextlib.nullcontext()
        )
        completed = 0

        async def _submit_one(identity: SigningIdentity) -> SubmissionOutcome:
            nonlocal completed
            try:
                async with limiter:
                    reference = await self._submitter.submit(
                        identity, endpoint, interface, target, function_name, args, value,
                    )
                outcome = SubmissionOutcome(actor=identity.address, reference=reference)
            except SubmissionError as exc:
                log.warning(
                    "%s failed for %s: %s (%s)",
                    function_name, identity.address[:10], exc.kind, exc,
                )
                outcome = SubmissionOutcome(actor=identity.address, error=exc)
            except Exception as exc:
                log.error(
                    "%s unexpected error for %s: %s",
                    function_name, identity.address[:10], exc, exc_info=True,
                )
                outcome = SubmissionOutcome(actor=identity.address, error=exc)

            completed += 1
            if self._observer is not None:
                try:
                    self._observer.advance(completed, total)
                except Exception as exc:
                    log.warning("Progress observer failed: %s", exc)
            return outcome

        outcomes = await asyncio.gather(*(_submit_one(i) for i in identities))

        summary = summarize(outcomes)
        log.info(
            "%s batch complete: %d ok, %d failed",
            function_name, summary.succeeded, summary.failed,
        )
        return list(outcomes)


def _validate_setup(
    endpoint: str,
    interface: ContractInterface,
    target: str,
    function_name: str,
    args: tuple,
    value: int | None,
) -> None:
    """Reject structurally broken batch input before anything is sent."""
    if not isinstance(interface, ContractInterface):
        raise SetupError(f"expected a ContractInterface, got {type(interface).__name__}")

    try:
        url = httpx.URL(endpoint)
    except (httpx.InvalidURL, TypeError) as exc:
        raise SetupError(f"invalid endpoint {endpoint!r}: {exc}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise SetupError(f"endpoint must be an http(s) URL, got {endpoint!r}")

    try:
        to_checksum_address(target)
    except (TypeError, ValueError) as exc:
        raise SetupError(f"invalid target address {target!r}") from exc

    try:
        fn = interface.function(function_name, len(args))
        interface.encode_call(function_name, args)
    except (InvalidFunctionError, ArgumentMismatchError) as exc:
        raise SetupError(str(exc)) from exc

    if fn.read_only:
        raise SetupError(f"{fn.signature} is {fn.state_mutability}, not a state-changing call")
    if value is not None and value < 0:
        raise SetupError(f"value must be non-negative, got {value}")
    if value and not fn.payable:
        raise SetupError(f"{fn.signature} is not payable but value={value}")


def summarize(outcomes: Sequence[SubmissionOutcome]) -> BatchSummary:
    """Count successes and failures (grouped by error kind)."""
    summary = BatchSummary(total=len(outcomes))
    for outcome in outcomes:
        if outcome.ok:
            summary.succeeded += 1
            continue
        summary.failed += 1
        kind = outcome.error_kind or "unknown"
        summary.failures_by_kind[kind] = summary.failures_by_kind.get(kind, 0) + 1
    return summary
