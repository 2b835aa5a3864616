"""Object store interface and the in-memory backend.

Every backend exposes the same flat key -> bytes namespace:

    put(key, data)      overwrite, creating any implied parents
    get(key)            NotFoundError when absent
    delete(key)         idempotent
    list(prefix)        keys whose string value starts with prefix
    exists(key)         never raises; backend failures read as False

Keys look like paths (``skills/foo/1.0.0/foo.skill``) but only the
filesystem backend gives them real hierarchy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .errors import NotFoundError


class ObjectStore(ABC):
    """Uniform key-value interface over filesystem, S3 and in-memory storage."""

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        """Store *data* at *key*, replacing prior content."""

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return the bytes stored at *key*.

        Raises:
            NotFoundError: If the key does not exist.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*. Deleting an absent key is not an error."""

    @abstractmethod
    def list(self, prefix: str) -> list[str]:
        """Return every key starting with *prefix*."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check whether *key* holds an object."""

    def describe(self) -> str:
        """Human-readable location used in logs and cache source labels."""
        return type(self).__name__


class MemoryStore(ObjectStore):
    """Dictionary-backed store used as a test double."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}

    def put(self, key: str, data: bytes) -> None:
        self.objects[key] = bytes(data)

    def get(self, key: str) -> bytes:
        try:
            return self.objects[key]
        except KeyError:
            raise NotFoundError(f"Object not found: {key}") from None

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)

    def list(self, prefix: str) -> list[str]:
        return [k for k in self.objects if k.startswith(prefix)]

    def exists(self, key: str) -> bool:
        return key in self.objects

    def describe(self) -> str:
        return "memory://"
