"""TransactionSubmitter protocol - signs, sends and confirms one contract call."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from stormint.ledger.abi import ContractInterface
from stormint.models.records import SigningIdentity, TransactionReference


class TransactionSubmitter(Protocol):
    """The single chokepoint for state-changing and read-only contract calls."""

    async def submit(
        self,
        identity: SigningIdentity,
        endpoint: str,
        interface: ContractInterface,
        target: str,
        function_name: str,
        args: Sequence[Any] = (),
        value: int | None = None,
    ) -> TransactionReference:
        """Sign, broadcast and wait until the transaction is mined."""
        ...

    async def query(
        self,
        endpoint: str,
        interface: ContractInterface,
        target: str,
        function_name: str,
        args: Sequence[Any] = (),
    ) -> tuple:
        """Run a read-only call against current state."""
        ...
