"""
Wallet backends able to create invoices for a user.

A backend is built from a connection descriptor. The descriptor's URI scheme
selects the backend kind, so new kinds only need an entry in BACKEND_KINDS.
"""

from __future__ import annotations

import abc
from typing import Callable, Dict
from urllib.parse import urlparse

from .nwc import NWC_SCHEME, NwcWallet


class WalletBackend(abc.ABC):
    """Something that can create an invoice committing to a description hash."""

    kind: str = "unknown"

    @abc.abstractmethod
    async def create_invoice(self, amount_msat: int, description_hash: str) -> str:
        """Return a bolt11 invoice or raise."""


class NwcBackend(WalletBackend):
    """Backend talking to a wallet over Nostr Wallet Connect."""

    kind = "nwc"

    def __init__(self, descriptor: str):
        self.wallet = NwcWallet(descriptor)

    async def create_invoice(self, amount_msat: int, description_hash: str) -> str:
        return await self.wallet.make_invoice(amount_msat, description_hash=description_hash)

    def __repr__(self) -> str:
        # The descriptor embeds a secret; only show the wallet pubkey.
        return f"NwcBackend(wallet={self.wallet.config.wallet_pubkey[:16]})"


BACKEND_KINDS: Dict[str, Callable[[str], WalletBackend]] = {
    NWC_SCHEME: NwcBackend,
}


def build_backend(descriptor: str) -> WalletBackend:
    """
    Create the backend matching a connection descriptor.

    Raises:
        ValueError: Unknown scheme or invalid descriptor.
    """
    scheme = urlparse(descriptor).scheme
    factory = BACKEND_KINDS.get(scheme)
    if factory is None:
        raise ValueError(f"unsupported wallet descriptor scheme: {scheme or '(none)'}")
    return factory(descriptor)
