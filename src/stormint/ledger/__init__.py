"""Ethereum JSON-RPC integration components."""

from stormint.ledger.abi import AbiFunction, ContractInterface
from stormint.ledger.rpc import JsonRpcClient, RpcError
from stormint.ledger.submitter import EvmTransactionSubmitter

__all__ = [
    "AbiFunction", "ContractInterface",
    "JsonRpcClient", "RpcError",
    "EvmTransactionSubmitter",
]
