"""
Invoice creation with randomized failover across a user's wallet backends.

Backends are shuffled per request to spread load, then tried one at a time
until one returns an invoice. At most MAX_ATTEMPTS backends are tried, never
concurrently, so a slow backend cannot leave several live invoices behind
for one payment.
"""

from __future__ import annotations

import asyncio
import random
from typing import List, Optional, Protocol

import structlog

from .backends import WalletBackend
from .errors import AllBackendsFailed, BackendError, InvalidAmount, UserNotFound
from .metadata import description_hash, generate_metadata
from .state import ServiceState

MAX_ATTEMPTS = 3

logger = structlog.get_logger(__name__)


class Shuffler(Protocol):
    """Random source used to order backends; ``random.Random`` fits."""

    def shuffle(self, x: list) -> None: ...


class InvoiceBroker:
    """
    Turns a user's set of unreliable backends into one invoice operation.

    Args:
        state: Shared service state.
        rng: Object with a ``shuffle(list)`` method; a fresh ``random.Random``
            by default. Tests inject a controlled one.
        max_attempts: Upper bound on backends tried per request.
    """

    def __init__(
        self,
        state: ServiceState,
        rng: Optional[Shuffler] = None,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self.state = state
        self.rng = rng if rng is not None else random.Random()
        self.max_attempts = max_attempts

    def _candidates(self, username: str) -> List[WalletBackend]:
        backends = self.state.backends_for(username)
        if backends is None:
            raise UserNotFound(username)
        candidates = list(backends)
        self.rng.shuffle(candidates)
        return candidates[: self.max_attempts]

    async def _attempt(self, backend: WalletBackend, amount: int, desc_hash: str) -> str:
        timeout = self.state.backend_timeout
        scope = asyncio.timeout(timeout)
        try:
            async with scope:
                return await backend.create_invoice(amount, desc_hash)
        except TimeoutError:
            # A timeout raised by the backend itself keeps its own message.
            if scope.expired():
                raise BackendError(f"backend timed out after {timeout}s") from None
            raise

    async def create_invoice(self, username: str, amount: int) -> str:
        """
        Create an invoice for ``amount`` on behalf of ``username``.

        Raises:
            InvalidAmount: ``amount`` is not positive; no backend is contacted.
            UserNotFound: The username is not configured.
            AllBackendsFailed: Every attempted backend failed; carries the
                last backend error.
        """
        if amount <= 0:
            raise InvalidAmount()

        candidates = self._candidates(username)
        if not candidates:
            # Configuration loading guarantees at least one backend per user.
            raise RuntimeError(f"user {username} has no wallet backend")

        desc_hash = description_hash(generate_metadata(self.state.domain, username))
        log = logger.bind(username=username, amount=amount)

        last_error: Optional[Exception] = None
        for attempt, backend in enumerate(candidates, start=1):
            try:
                invoice = await self._attempt(backend, amount, desc_hash)
            except Exception as exc:
                log.warning(
                    "failed to create invoice",
                    attempt=attempt,
                    backend=backend.kind,
                    error=str(exc) or type(exc).__name__,
                )
                last_error = exc
                continue

            log.info("invoice created", attempt=attempt, backend=backend.kind, invoice=invoice)
            return invoice

        log.error("all backend attempts failed", attempts=len(candidates), error=str(last_error))
        raise AllBackendsFailed(username, last_error) from last_error
