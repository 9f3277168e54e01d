"""Concurrent minting across many accounts."""

from stormint.mint.executor import ConcurrentMintExecutor, summarize

__all__ = ["ConcurrentMintExecutor", "summarize"]
