"""HD account derivation - many signing identities from one BIP39 seed."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from bip_utils import (
    Bip39MnemonicValidator,
    Bip39SeedGenerator,
    Bip44,
    Bip44Changes,
    Bip44Coins,
)
from eth_account import Account

from stormint.errors import InvalidSeedError, PathFailureError
from stormint.interfaces.observer import ProgressObserver
from stormint.models.records import SigningIdentity

log = logging.getLogger(__name__)

# Non-hardened BIP32 child indices
MAX_INDEX = 2**31


def _check_range(start_index: int, end_index: int) -> None:
    if start_index < 0 or end_index < 0:
        raise ValueError(f"indices must be non-negative, got [{start_index}, {end_index})")
    if start_index > end_index:
        raise ValueError(f"start_index {start_index} is greater than end_index {end_index}")
    if end_index > MAX_INDEX:
        raise ValueError(f"end_index {end_index} exceeds the BIP32 non-hardened range")


def _coin_context(seed_phrase: str) -> Bip44:
    """Validate the phrase and return the m/44'/60' context."""
    if not Bip39MnemonicValidator().IsValid(seed_phrase):
        raise InvalidSeedError("seed phrase failed BIP39 word-list/checksum validation")
    seed = Bip39SeedGenerator(seed_phrase).Generate()
    return Bip44.FromSeed(seed, Bip44Coins.ETHEREUM).Purpose().Coin()


def _derive_one(coin: Bip44, index: int) -> SigningIdentity:
    """Derive m/44'/60'/0'/0/{index}. Touches no shared mutable state."""
    try:
        node = coin.Account(0).Change(Bip44Changes.CHAIN_EXT).AddressIndex(index)
        account = Account.from_key(node.PrivateKey().Raw().ToBytes())
    except Exception as exc:
        raise PathFailureError(index, f"derivation failed at index {index}: {exc}") from exc
    return SigningIdentity(address=account.address, account=account, index=index)


def identity_from_key(private_key: str) -> SigningIdentity:
    """Wrap an imported hex private key (e.g. a funding account)."""
    try:
        account = Account.from_key(private_key)
    except Exception as exc:
        raise InvalidSeedError("private key is not a valid secp256k1 key") from exc
    return SigningIdentity(address=account.address, account=account)


def derive_identities(
    seed_phrase: str,
    start_index: int,
    end_index: int,
    *,
    observer: ProgressObserver | None = None,
    max_workers: int | None = None,
) -> list[SigningIdentity]:
    """Derive identities for every index in ``[start_index, end_index)``.

    Indices are derived in parallel on a thread pool and gathered in index
    order, so the result is deterministic for a given (seed, range). Any
    per-index failure, or two indices yielding the same address, fails the
    whole call with PathFailureError.
    """
    _check_range(start_index, end_index)
    total = end_index - start_index
    coin = _coin_context(seed_phrase)
    if total == 0:
        return []

    log.info("Deriving %d identities [%d, %d)", total, start_index, end_index)

    identities: list[SigningIdentity] = []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        derived = pool.map(lambda i: _derive_one(coin, i), range(start_index, end_index))
        for identity in derived:
            identities.append(identity)
            log.debug("Derived index %d -> %s", identity.index, identity.address)
            if observer is not None:
                try:
                    observer.advance(len(identities), total)
                except Exception as exc:
                    log.warning("Progress observer failed: %s", exc)

    seen: set[str] = set()
    for identity in identities:
        if identity.address in seen:
            raise PathFailureError(
                identity.index, f"index {identity.index} repeats address {identity.address}",
            )
        seen.add(identity.address)

    return identities
