"""Error taxonomy shared by stores, the index, repositories and the resolver."""

from __future__ import annotations

from typing import Optional


class SkrepoError(RuntimeError):
    pass


class NotFoundError(SkrepoError):
    """A key, skill or version is absent. Expected during cascade fall-through."""


class StorageIOError(SkrepoError):
    """Local filesystem failure."""


class RemoteTransportError(SkrepoError):
    """Network, auth or HTTP-status failure from a remote backend."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is None:
            return base
        return f"{base} (HTTP {self.status_code})"


class IndexSerializationError(SkrepoError):
    """The skills index exists but cannot be parsed or serialized."""


class ConfigError(SkrepoError):
    """Required repository configuration is missing or invalid."""
