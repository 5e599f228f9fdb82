"""
Minimal NWC (Nostr Wallet Connect) client.

Implements just enough of NIP-47 to ask a wallet service for an invoice:

1. Parse the connection URI: relay URL, wallet pubkey, client secret
2. Open a WebSocket to the relay
3. Subscribe to the response (kind 23195) and publish the encrypted
   request (kind 23194)
4. Decrypt the NIP-04 response and return the result

Every request uses its own relay connection so concurrent requests never
read each other's messages.
"""

from __future__ import annotations

import asyncio
import json
import secrets
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse

import websockets

from .crypto import get_public_key, nip04_decrypt, nip04_encrypt, sign_event

NWC_SCHEME = "nostr+walletconnect"
REQUEST_KIND = 23194
RESPONSE_KIND = 23195


class NwcError(Exception):
    """The relay or the wallet service rejected a request."""


@dataclass(frozen=True)
class NwcConfig:
    """Parsed NWC connection URI."""
    relay_url: str
    wallet_pubkey: str
    secret_key: str
    client_pubkey: str


def parse_nwc_url(nwc_url: str) -> NwcConfig:
    """
    Parse an NWC connection URI.

    Format: nostr+walletconnect://<wallet_pubkey>?relay=<relay_url>&secret=<secret_key>

    Raises:
        ValueError: If the scheme is wrong or a component is missing.
    """
    parsed = urlparse(nwc_url)

    if parsed.scheme != NWC_SCHEME:
        raise ValueError(f"Invalid NWC URL scheme: {parsed.scheme} (expected {NWC_SCHEME})")

    wallet_pubkey = parsed.netloc or parsed.path.lstrip("/")
    if not wallet_pubkey:
        raise ValueError("NWC URL missing wallet pubkey")

    params = parse_qs(parsed.query)
    relay_url = params.get("relay", [None])[0]
    secret_key = params.get("secret", [None])[0]

    if not relay_url:
        raise ValueError("NWC URL missing relay parameter")
    if not secret_key:
        raise ValueError("NWC URL missing secret parameter")

    return NwcConfig(
        relay_url=relay_url,
        wallet_pubkey=wallet_pubkey,
        secret_key=secret_key,
        client_pubkey=get_public_key(secret_key),
    )


class NwcWallet:
    """NIP-47 client bound to one wallet connection."""

    def __init__(self, nwc_url: str, timeout: float = 30.0):
        self.config = parse_nwc_url(nwc_url)
        self.timeout = timeout

    def _build_request(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        content = nip04_encrypt(
            self.config.secret_key,
            self.config.wallet_pubkey,
            json.dumps({"method": method, "params": params}),
        )
        event = {
            "kind": REQUEST_KIND,
            "pubkey": self.config.client_pubkey,
            "created_at": int(time.time()),
            "tags": [["p", self.config.wallet_pubkey]],
            "content": content,
        }
        return sign_event(event, self.config.secret_key)

    def _parse_response(self, response_event: Dict[str, Any]) -> Dict[str, Any]:
        decrypted = nip04_decrypt(
            self.config.secret_key,
            self.config.wallet_pubkey,
            response_event["content"],
        )
        response = json.loads(decrypted)

        error = response.get("error")
        if error:
            raise NwcError(
                f"NWC error: {error.get('message', 'Unknown error')} "
                f"(code: {error.get('code', 'N/A')})"
            )
        return response.get("result") or {}

    async def request(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send a NIP-47 request and wait for the wallet's response.

        Args:
            method: NIP-47 method name.
            params: Method parameters.

        Returns:
            The ``result`` object of the response.

        Raises:
            NwcError: The relay refused the event or the wallet returned an error.
            TimeoutError: No response arrived within ``self.timeout`` seconds.
        """
        request_event = self._build_request(method, params)
        sub_id = secrets.token_hex(16)
        sub_filter = {
            "kinds": [RESPONSE_KIND],
            "authors": [self.config.wallet_pubkey],
            "#p": [self.config.client_pubkey],
            "#e": [request_event["id"]],
        }

        async with websockets.connect(self.config.relay_url, open_timeout=self.timeout) as ws:
            await ws.send(json.dumps(["REQ", sub_id, sub_filter]))
            await ws.send(json.dumps(["EVENT", request_event]))

            deadline = time.monotonic() + self.timeout
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError(f"NWC {method} timed out after {self.timeout}s")
                try:
                    raw_msg = await asyncio.wait_for(ws.recv(), timeout=remaining)
                except asyncio.TimeoutError:
                    raise TimeoutError(f"NWC {method} timed out after {self.timeout}s") from None

                msg = json.loads(raw_msg)
                if not isinstance(msg, list) or not msg:
                    continue

                if msg[0] == "OK" and len(msg) >= 4 and msg[1] == request_event["id"] and not msg[2]:
                    raise NwcError(f"relay rejected NWC request: {msg[3]}")

                if msg[0] == "EVENT" and len(msg) >= 3 and msg[1] == sub_id:
                    await ws.send(json.dumps(["CLOSE", sub_id]))
                    return self._parse_response(msg[2])

    async def make_invoice(
        self,
        amount_msat: int,
        description_hash: Optional[str] = None,
        description: Optional[str] = None,
        expiry: Optional[int] = None,
    ) -> str:
        """
        Ask the wallet for a bolt11 invoice.

        Args:
            amount_msat: Amount in millisatoshis.
            description_hash: Hex SHA-256 committed to by the invoice.
            description: Plain-text description (unused when hashing).
            expiry: Invoice expiry in seconds, wallet default when None.

        Returns:
            The bolt11 invoice string.
        """
        params: Dict[str, Any] = {"amount": amount_msat}
        if description_hash is not None:
            params["description_hash"] = description_hash
        if description is not None:
            params["description"] = description
        if expiry is not None:
            params["expiry"] = expiry

        result = await self.request("make_invoice", params)

        invoice = result.get("invoice", "")
        if not invoice:
            raise NwcError("NWC make_invoice returned no invoice")
        return invoice
