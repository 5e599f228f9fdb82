"""Configuration file loading and validation."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import List, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


class ConfigError(Exception):
    """The configuration file could not be loaded."""


class ServerConfig(BaseModel):
    domain: str
    listen_addr: str
    log_dir: Path
    backend_timeout: float = Field(default=30.0, gt=0, description="Seconds per backend attempt")

    @field_validator("listen_addr")
    @classmethod
    def _check_listen_addr(cls, value: str) -> str:
        host, sep, port = value.rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ValueError(f"listen_addr must be host:port, got {value!r}")
        return value

    @property
    def bind(self) -> Tuple[str, int]:
        """(host, port) parsed from listen_addr."""
        host, _, port = self.listen_addr.rpartition(":")
        return host.strip("[]"), int(port)


class UserConfig(BaseModel):
    name: str
    nwcs: List[str] = Field(default_factory=list)


class Config(BaseModel):
    server: ServerConfig
    users: List[UserConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_users(self) -> "Config":
        seen = set()
        for user in self.users:
            if not user.nwcs:
                raise ValueError(f"user {user.name} has no NWC configured")
            if user.name in seen:
                raise ValueError(f"user {user.name} configured more than once")
            seen.add(user.name)
        return self


def parse_config(contents: str) -> Config:
    """Parse and validate TOML configuration text."""
    try:
        return Config.model_validate(tomllib.loads(contents))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid TOML: {exc}") from exc
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def load_config(path: Union[str, Path]) -> Config:
    """Load the configuration file at ``path``."""
    try:
        contents = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    return parse_config(contents)
