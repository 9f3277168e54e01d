"""Data models for stormint."""

from stormint.models.records import (
    UINT256_MAX,
    AggregatedBatch,
    BatchSummary,
    SigningIdentity,
    SubmissionOutcome,
    TransactionReference,
    TransferInstruction,
)
from stormint.models.config import StormintConfig

__all__ = [
    "UINT256_MAX",
    "AggregatedBatch", "BatchSummary", "SigningIdentity",
    "SubmissionOutcome", "TransactionReference", "TransferInstruction",
    "StormintConfig",
]
