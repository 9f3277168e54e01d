"""Gas distribution to many accounts in a single transaction."""

from stormint.distributor.distribute import (
    BatchDistributor,
    build_batch,
    transfer_instructions,
)

__all__ = ["BatchDistributor", "build_batch", "transfer_instructions"]
