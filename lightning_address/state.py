"""Process-wide service state, built once from configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Tuple

from .backends import WalletBackend, build_backend
from .config import Config


@dataclass(frozen=True)
class ServiceState:
    """
    Read-only after construction and shared by every request handler.

    ``users`` maps a username to its backends in configuration order.
    """

    domain: str
    users: Mapping[str, Tuple[WalletBackend, ...]] = field(default_factory=dict)
    backend_timeout: Optional[float] = 30.0

    def __post_init__(self) -> None:
        frozen = {name: tuple(backends) for name, backends in self.users.items()}
        object.__setattr__(self, "users", MappingProxyType(frozen))

    def backends_for(self, username: str) -> Optional[Tuple[WalletBackend, ...]]:
        """Backends configured for ``username``, or None for unknown users."""
        return self.users.get(username)

    @classmethod
    def from_config(
        cls,
        config: Config,
        backend_factory: Callable[[str], WalletBackend] = build_backend,
    ) -> "ServiceState":
        """
        Build the state, creating one backend per configured descriptor.

        Raises:
            ValueError: A descriptor could not be turned into a backend.
        """
        users = {}
        for user in config.users:
            try:
                users[user.name] = tuple(backend_factory(d) for d in user.nwcs)
            except ValueError as exc:
                raise ValueError(f"user {user.name}: {exc}") from exc
        return cls(
            domain=config.server.domain,
            users=users,
            backend_timeout=config.server.backend_timeout,
        )
