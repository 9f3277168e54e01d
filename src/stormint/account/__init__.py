"""Account derivation from mnemonic phrases."""

from stormint.account.deriver import derive_identities, identity_from_key

__all__ = ["derive_identities", "identity_from_key"]
