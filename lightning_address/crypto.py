"""
Nostr primitives needed to talk to a NIP-47 wallet service.

- x-only public key derivation
- NIP-04 payload encryption (ECDH shared secret + AES-256-CBC)
- NIP-01 event id computation and BIP-340 Schnorr signing

coincurve (libsecp256k1) handles the curve, PyCryptodome the cipher.
"""

from __future__ import annotations

import hashlib
import json
import os
from base64 import b64decode, b64encode
from typing import Any, Dict

from coincurve import PrivateKey, PublicKey
from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad

IV_MARKER = "?iv="


def get_public_key(secret_key_hex: str) -> str:
    """Return the 32-byte x-only public key (hex) for a secret key."""
    compressed = PrivateKey(bytes.fromhex(secret_key_hex)).public_key.format(compressed=True)
    return compressed[1:].hex()


def _conversation_key(secret_key_hex: str, peer_pubkey_hex: str) -> bytes:
    # Nostr pubkeys are x-only; assume the even-y point.
    peer = PublicKey(b"\x02" + bytes.fromhex(peer_pubkey_hex))
    point = peer.multiply(bytes.fromhex(secret_key_hex))
    return point.format(compressed=True)[1:]


def nip04_encrypt(secret_key_hex: str, peer_pubkey_hex: str, plaintext: str) -> str:
    """Encrypt ``plaintext`` for ``peer_pubkey_hex`` as ``<b64 ciphertext>?iv=<b64 iv>``."""
    iv = os.urandom(AES.block_size)
    cipher = AES.new(_conversation_key(secret_key_hex, peer_pubkey_hex), AES.MODE_CBC, iv)
    ciphertext = cipher.encrypt(pad(plaintext.encode("utf-8"), AES.block_size))
    return b64encode(ciphertext).decode("ascii") + IV_MARKER + b64encode(iv).decode("ascii")


def nip04_decrypt(secret_key_hex: str, peer_pubkey_hex: str, payload: str) -> str:
    """Decrypt a NIP-04 payload sent by ``peer_pubkey_hex``."""
    ciphertext_b64, sep, iv_b64 = payload.partition(IV_MARKER)
    if not sep or not iv_b64:
        raise ValueError("Invalid NIP-04 payload (expected '<ciphertext>?iv=<iv>')")

    cipher = AES.new(
        _conversation_key(secret_key_hex, peer_pubkey_hex),
        AES.MODE_CBC,
        b64decode(iv_b64),
    )
    return unpad(cipher.decrypt(b64decode(ciphertext_b64)), AES.block_size).decode("utf-8")


def event_id(event: Dict[str, Any]) -> str:
    """Compute the NIP-01 id of an unsigned event."""
    serialized = json.dumps(
        [0, event["pubkey"], event["created_at"], event["kind"], event["tags"], event["content"]],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def sign_event(event: Dict[str, Any], secret_key_hex: str) -> Dict[str, Any]:
    """Fill in ``id`` and ``sig`` on ``event`` and return it."""
    event["id"] = event_id(event)
    signature = PrivateKey(bytes.fromhex(secret_key_hex)).sign_schnorr(bytes.fromhex(event["id"]))
    event["sig"] = signature.hex()
    return event
