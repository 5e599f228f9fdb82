"""
LUD-16 metadata generation.

The serialized metadata is hashed into the invoice ``description_hash``, so
the pay-info endpoint and the invoice endpoint must produce the exact same
bytes. Both go through generate_metadata().
"""

from __future__ import annotations

import hashlib
import json
from typing import List, Tuple

ATTRIBUTION = "powered by https://github.com/yfaming/thor"


def metadata_entries(domain: str, username: str) -> List[Tuple[str, str]]:
    """
    Build the ordered metadata entries for a user.

    LUD-16 requires a ``text/identifier`` (or ``text/email``) entry.
    """
    address = f"{username}@{domain}"
    return [
        ("text/identifier", address),
        ("text/plain", f"sats for {address}"),
        ("text/plain", ATTRIBUTION),
    ]


def generate_metadata(domain: str, username: str) -> str:
    """
    Serialize the metadata array as compact JSON.

    Args:
        domain: Public domain name of the service.
        username: Lightning Address user part.

    Returns:
        JSON text such as ``[["text/identifier","alice@example.com"],...]``.
    """
    return json.dumps(
        [list(entry) for entry in metadata_entries(domain, username)],
        separators=(",", ":"),
        ensure_ascii=False,
    )


def description_hash(metadata: str) -> str:
    """Hex-encoded SHA-256 of the serialized metadata (LUD-06)."""
    return hashlib.sha256(metadata.encode("utf-8")).hexdigest()
