"""Batch distributor - many transfers folded into one contract call."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from stormint.errors import ArgumentMismatchError
from stormint.interfaces.submitter import TransactionSubmitter
from stormint.ledger.abi import ContractInterface
from stormint.models.records import (
    UINT256_MAX,
    AggregatedBatch,
    SigningIdentity,
    TransactionReference,
    TransferInstruction,
)

log = logging.getLogger(__name__)


def build_batch(instructions: Sequence[TransferInstruction]) -> AggregatedBatch:
    """Build the array argument and the exact total value to attach.

    A total that does not fit in uint256 is rejected rather than wrapped.
    """
    total = 0
    argument: list[tuple[str, int]] = []
    for ins in instructions:
        total += ins.amount
        if total > UINT256_MAX:
            raise ArgumentMismatchError(
                f"aggregated value overflows uint256 after {len(argument) + 1} transfers"
            )
        argument.append((ins.receiver, ins.amount))
    return AggregatedBatch(argument=argument, total_value=total)


def transfer_instructions(receivers: Iterable[str], amount: int) -> list[TransferInstruction]:
    """Equal-amount instructions, one per receiver."""
    return [TransferInstruction(receiver=r, amount=amount) for r in receivers]


class BatchDistributor:
    """Sends one aggregated transfer transaction through a TransactionSubmitter.

    ``function_name`` names the contract's batch entry point; its argument
    must be an array of (receiver, amount) structs in the ABI.
    """

    def __init__(
        self,
        submitter: TransactionSubmitter,
        function_name: str = "distributeEther",
    ) -> None:
        self._submitter = submitter
        self._function_name = function_name

    async def distribute(
        self,
        sender: SigningIdentity,
        endpoint: str,
        interface: ContractInterface,
        target: str,
        instructions: Sequence[TransferInstruction],
    ) -> TransactionReference:
        """Submit exactly one transaction carrying every instruction.

        An empty list still submits (an empty array with zero value); callers
        wanting a no-op must check for emptiness first.
        """
        batch = build_batch(instructions)
        log.info(
            "Distributing %d wei to %d receivers from %s",
            batch.total_value, len(batch.argument), sender.address[:10],
        )
        return await self._submitter.submit(
            sender,
            endpoint,
            interface,
            target,
            self._function_name,
            [batch.argument],
            batch.total_value,
        )
