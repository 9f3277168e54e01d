"""Exception taxonomy for derivation, submission, query and batch setup."""

from __future__ import annotations


class StormintError(Exception):
    """Base class for every error raised by stormint."""

    kind = "error"


# ── Derivation ─────────────────────────────────────────


class DerivationError(StormintError):
    """Seed or derivation-path problem. Fatal to the whole derivation call."""

    kind = "derivation_failed"


class InvalidSeedError(DerivationError):
    kind = "invalid_seed"


class PathFailureError(DerivationError):
    """Derivation failed (or produced a duplicate address) for one index."""

    kind = "path_failure"

    def __init__(self, index: int, message: str = "") -> None:
        self.index = index
        super().__init__(message or f"derivation failed at index {index}")


# ── Submission / query ─────────────────────────────────


class SubmissionError(StormintError):
    """A single state-changing call did not end in a confirmed transaction."""

    kind = "submission_failed"

    def __init__(self, message: str = "", tx_hash: str | None = None) -> None:
        self.tx_hash = tx_hash
        super().__init__(message or self.kind)


class QueryError(StormintError):
    """A read-only call failed."""

    kind = "query_failed"


class InvalidFunctionError(SubmissionError, QueryError):
    """Function is missing from the interface or has the wrong mutability."""

    kind = "invalid_function"


class ArgumentMismatchError(SubmissionError, QueryError):
    """Arguments (or attached value) do not fit the function's ABI."""

    kind = "argument_mismatch"


class InsufficientFundsError(SubmissionError):
    kind = "insufficient_funds"


class RevertedError(SubmissionError, QueryError):
    """The call's logic failed on chain.

    For a mined transaction ``tx_hash`` is set: gas was spent and the ledger
    advanced even though the intended state change was undone.
    """

    kind = "reverted"

    def __init__(
        self,
        message: str = "",
        tx_hash: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(message or f"execution reverted: {reason or '?'}", tx_hash)


class NetworkFailureError(SubmissionError, QueryError):
    kind = "network_failure"


class SubmissionTimeoutError(SubmissionError):
    kind = "timeout"


# ── Batch setup ────────────────────────────────────────


class SetupError(StormintError):
    """Malformed batch-level input detected before any submission started."""

    kind = "setup_failed"
