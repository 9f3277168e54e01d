"""Record types for identities, transfers and submission results."""

from __future__ import annotations

from dataclasses import dataclass, field

from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

UINT256_MAX = 2**256 - 1


@dataclass(frozen=True)
class SigningIdentity:
    """A derived key pair. The private key lives only inside ``account``."""

    address: str  # EIP-55 checksummed
    account: LocalAccount = field(repr=False, compare=False)
    index: int | None = None  # HD index; None for imported keys


@dataclass
class TransferInstruction:
    """One (receiver, amount) leg of an aggregated transfer."""

    receiver: str
    amount: int  # wei

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"transfer amount must be non-negative, got {self.amount}")
        self.receiver = to_checksum_address(self.receiver)


@dataclass(frozen=True)
class AggregatedBatch:
    """Encoded array argument plus the total value to attach."""

    argument: list[tuple[str, int]]
    total_value: int  # wei


@dataclass(frozen=True)
class TransactionReference:
    """A transaction the ledger reported as mined."""

    tx_hash: str
    block_number: int
    gas_used: int = 0


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of one identity's submission inside a batch."""

    actor: str
    reference: TransactionReference | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def tx_hash(self) -> str | None:
        if self.reference is not None:
            return self.reference.tx_hash
        return getattr(self.error, "tx_hash", None)

    @property
    def error_kind(self) -> str | None:
        if self.error is None:
            return None
        return getattr(self.error, "kind", type(self.error).__name__)


@dataclass
class BatchSummary:
    """Aggregated counts over a list of outcomes."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    failures_by_kind: dict[str, int] = field(default_factory=dict)
