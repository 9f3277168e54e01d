"""EVM transaction submitter - sign, broadcast and confirm one contract call."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import httpx
from eth_utils import encode_hex, to_bytes, to_checksum_address

from stormint.errors import (
    ArgumentMismatchError,
    InsufficientFundsError,
    InvalidFunctionError,
    NetworkFailureError,
    QueryError,
    RevertedError,
    SubmissionError,
    SubmissionTimeoutError,
)
from stormint.ledger.abi import ContractInterface, decode_revert_reason
from stormint.ledger.rpc import JsonRpcClient, RpcError
from stormint.models.records import SigningIdentity, TransactionReference

log = logging.getLogger(__name__)

# geth/anvil/hardhat report reverts with JSON-RPC code 3 and these messages
_REVERT_CODE = 3
_REVERT_MARKER = "revert"
_INSUFFICIENT_FUNDS_MARKER = "insufficient funds"


def _revert_reason(exc: RpcError) -> str | None:
    data = exc.data
    if isinstance(data, dict):
        data = data.get("data")
    if isinstance(data, str) and data.startswith("0x") and len(data) > 2:
        try:
            return decode_revert_reason(to_bytes(hexstr=data))
        except ValueError:
            pass
    _, sep, tail = exc.message.partition("reverted: ")
    return tail.strip() if sep else None


def _classify_rpc_error(exc: RpcError, tx_hash: str | None = None) -> SubmissionError:
    """Map a node error onto the submission error taxonomy."""
    msg = exc.message.lower()
    if _INSUFFICIENT_FUNDS_MARKER in msg:
        return InsufficientFundsError(exc.message, tx_hash)
    if exc.code == _REVERT_CODE or _REVERT_MARKER in msg:
        return RevertedError(exc.message, tx_hash, reason=_revert_reason(exc))
    return NetworkFailureError(f"node rejected request: {exc.message}", tx_hash)


def _quantity(value: Any, what: str) -> int:
    """Parse a JSON-RPC hex quantity."""
    if not isinstance(value, str):
        raise NetworkFailureError(f"node returned no {what}")
    try:
        return int(value, 16)
    except ValueError as exc:
        raise NetworkFailureError(f"node returned malformed {what}: {value!r}") from exc


def _checksum(address: str) -> str:
    try:
        return to_checksum_address(address)
    except (TypeError, ValueError) as exc:
        raise ArgumentMismatchError(f"invalid address: {address!r}") from exc


class EvmTransactionSubmitter:
    """Submits state-changing contract calls and runs read-only queries.

    Holds no connection state: every call opens its own JSON-RPC session
    against the endpoint it is given, so one instance can serve any number
    of concurrent submissions.
    """

    def __init__(
        self,
        *,
        confirmation_timeout: float | None = None,
        poll_interval: float = 1.0,
        request_timeout: float = 30.0,
        gas_price: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._confirmation_timeout = confirmation_timeout
        self._poll_interval = poll_interval
        self._request_timeout = request_timeout
        self._gas_price = gas_price
        self._transport = transport

    def _session(self, endpoint: str) -> JsonRpcClient:
        return JsonRpcClient(endpoint, self._request_timeout, self._transport)

    # ── Transactions ──────────────────────────────────────

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
        """Sign and broadcast ``function_name(args)``, then wait until mined.

        Returns only for a transaction the ledger reports as included. A
        mined transaction with status 0 raises RevertedError with its hash.
        """
        fn = interface.function(function_name, len(args))
        if fn.read_only:
            raise InvalidFunctionError(f"{fn.signature} is {fn.state_mutability}; use query()")
        data = interface.encode_call(function_name, args)

        value = value or 0
        if value < 0:
            raise ArgumentMismatchError(f"value must be non-negative, got {value}")
        if value and not fn.payable:
            raise ArgumentMismatchError(f"{fn.signature} is not payable but value={value}")
        to = _checksum(target)

        log.info("Submitting %s from %s (value=%d)", fn.signature, identity.address[:10], value)

        async with self._session(endpoint) as rpc:
            tx_hash = await self._broadcast(rpc, identity, to, data, value)
            receipt = await self._confirm(rpc, tx_hash)

        reference = TransactionReference(
            tx_hash=tx_hash,
            block_number=_quantity(receipt.get("blockNumber"), "blockNumber"),
            gas_used=int(receipt.get("gasUsed") or "0x0", 16),
        )
        if int(receipt.get("status") or "0x1", 16) == 0:
            log.warning(
                "%s from %s reverted in block %d (tx=%s)",
                fn.signature, identity.address[:10], reference.block_number, tx_hash[:18],
            )
            raise RevertedError(
                f"{fn.signature} reverted in block {reference.block_number}", tx_hash=tx_hash,
            )

        log.info(
            "%s from %s confirmed in block %d (tx=%s)",
            fn.signature, identity.address[:10], reference.block_number, tx_hash[:18],
        )
        return reference

    async def _broadcast(
        self,
        rpc: JsonRpcClient,
        identity: SigningIdentity,
        to: str,
        data: bytes,
        value: int,
    ) -> str:
        call = {
            "from": identity.address,
            "to": to,
            "data": encode_hex(data),
            "value": hex(value),
        }
        try:
            chain_id = _quantity(await rpc.request("eth_chainId"), "chainId")
            nonce = _quantity(
                await rpc.request("eth_getTransactionCount", [identity.address, "pending"]),
                "nonce",
            )
            gas = _quantity(await rpc.request("eth_estimateGas", [call]), "gas estimate")
            gas_price = self._gas_price
            if gas_price is None:
                gas_price = _quantity(await rpc.request("eth_gasPrice"), "gasPrice")

            signed = identity.account.sign_transaction({
                "chainId": chain_id,
                "nonce": nonce,
                "to": to,
                "value": value,
                "data": data,
                "gas": gas,
                "gasPrice": gas_price,
            })
            tx_hash = await rpc.request(
                "eth_sendRawTransaction", [encode_hex(signed.raw_transaction)],
            )
        except RpcError as exc:
            raise _classify_rpc_error(exc) from exc

        tx_hash = tx_hash or encode_hex(signed.hash)
        log.debug("Broadcast %s (nonce=%d, gas=%d)", tx_hash, nonce, gas)
        return tx_hash

    async def _confirm(self, rpc: JsonRpcClient, tx_hash: str) -> dict:
        try:
            return await asyncio.wait_for(
                self._poll_receipt(rpc, tx_hash), self._confirmation_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise SubmissionTimeoutError(
                f"{tx_hash} not confirmed within {self._confirmation_timeout}s", tx_hash,
            ) from exc
        except RpcError as exc:
            raise _classify_rpc_error(exc, tx_hash) from exc
        except SubmissionError as exc:
            if exc.tx_hash is None:
                exc.tx_hash = tx_hash
            raise

    async def _poll_receipt(self, rpc: JsonRpcClient, tx_hash: str) -> dict:
        while True:
            receipt = await rpc.request("eth_getTransactionReceipt", [tx_hash])
            if receipt and receipt.get("blockNumber"):
                return receipt
            await asyncio.sleep(self._poll_interval)

    # ── Read-only calls ───────────────────────────────────

    async def query(
        self,
        endpoint: str,
        interface: ContractInterface,
        target: str,
        function_name: str,
        args: Sequence[Any] = (),
    ) -> tuple:
        """Run ``function_name(args)`` via eth_call and decode its return values.

        Never creates a transaction. Raises a QueryError subclass on failure.
        """
        data = interface.encode_call(function_name, args)
        to = _checksum(target)

        async with self._session(endpoint) as rpc:
            try:
                result = await rpc.request(
                    "eth_call", [{"to": to, "data": encode_hex(data)}, "latest"],
                )
            except RpcError as exc:
                err = _classify_rpc_error(exc)
                if isinstance(err, QueryError):
                    raise err from exc
                raise NetworkFailureError(str(err)) from exc
            except SubmissionTimeoutError as exc:
                raise NetworkFailureError(str(exc)) from exc

        log.debug("eth_call %s on %s -> %s", function_name, to[:10], result)
        return interface.decode_output(function_name, to_bytes(hexstr=result or "0x"), len(args))
