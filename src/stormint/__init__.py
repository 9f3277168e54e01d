"""stormint - batch account derivation, aggregated funding and concurrent minting."""

from stormint.account import derive_identities, identity_from_key
from stormint.distributor import BatchDistributor, build_batch, transfer_instructions
from stormint.ledger import ContractInterface, EvmTransactionSubmitter
from stormint.mint import ConcurrentMintExecutor, summarize

__version__ = "0.1.0"

__all__ = [
    "derive_identities", "identity_from_key",
    "BatchDistributor", "build_batch", "transfer_instructions",
    "ContractInterface", "EvmTransactionSubmitter",
    "ConcurrentMintExecutor", "summarize",
]
