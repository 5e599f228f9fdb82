"""
LUD-06 ``payRequest`` document for a Lightning Address.

See LUD-16 (paying to static internet identifiers) and LUD-06 (payRequest).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .errors import UserNotFound
from .metadata import generate_metadata
from .state import ServiceState

MAX_SENDABLE_MSAT = 100_000_000_000  # 1 BTC
MIN_SENDABLE_MSAT = 1_000  # 1 sat
PAY_REQUEST_TAG = "payRequest"


@dataclass(frozen=True)
class PayInfo:
    """The payRequest document served at /.well-known/lnurlp/<username>."""
    callback: str
    max_sendable: int
    min_sendable: int
    metadata: str
    tag: str = PAY_REQUEST_TAG

    def to_dict(self) -> Dict[str, Any]:
        return {
            "callback": self.callback,
            "maxSendable": self.max_sendable,
            "minSendable": self.min_sendable,
            "metadata": self.metadata,
            "tag": self.tag,
        }


def callback_url(domain: str, username: str) -> str:
    return f"https://{domain}/lnurlp/{username}"


def resolve_pay_info(state: ServiceState, username: str) -> PayInfo:
    """
    Build the payRequest document for ``username``.

    Raises:
        UserNotFound: The username is not configured.
    """
    if state.backends_for(username) is None:
        raise UserNotFound(username)

    return PayInfo(
        callback=callback_url(state.domain, username),
        max_sendable=MAX_SENDABLE_MSAT,
        min_sendable=MIN_SENDABLE_MSAT,
        metadata=generate_metadata(state.domain, username),
    )
