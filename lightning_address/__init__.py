"""
⚡ lightning-address: a Lightning Address server for FastAPI.

Serves LUD-16 pay-info documents and creates invoices through one or more
Nostr Wallet Connect wallets per user, failing over between them.

Usage:
    from lightning_address import ServiceState, create_app, load_config

    state = ServiceState.from_config(load_config("config.toml"))
    app = create_app(state)
"""

from .app import create_app
from .backends import NwcBackend, WalletBackend, build_backend
from .broker import MAX_ATTEMPTS, InvoiceBroker
from .config import Config, ConfigError, load_config, parse_config
from .errors import (
    AllBackendsFailed,
    BackendError,
    InvalidAmount,
    LightningAddressError,
    UserNotFound,
)
from .metadata import description_hash, generate_metadata
from .payinfo import PayInfo, resolve_pay_info
from .state import ServiceState

__version__ = "0.1.0"

__all__ = [
    # Application
    "create_app",
    "ServiceState",
    # Configuration
    "Config",
    "ConfigError",
    "load_config",
    "parse_config",
    # Protocol
    "generate_metadata",
    "description_hash",
    "PayInfo",
    "resolve_pay_info",
    "InvoiceBroker",
    "MAX_ATTEMPTS",
    # Backends
    "WalletBackend",
    "NwcBackend",
    "build_backend",
    # Errors
    "LightningAddressError",
    "InvalidAmount",
    "UserNotFound",
    "BackendError",
    "AllBackendsFailed",
]
