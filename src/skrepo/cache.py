"""Skill cache — payloads plus provenance metadata in a secondary store.

A cache entry for ``name@version`` occupies two keys::

    skills/<name>/<version>/<name>.skill      payload (same key as the primary)
    skills/<name>/<version>/metadata.json     name, version, source, cached_at

Entries never expire; they are removed per version or per skill name.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ValidationError

from .errors import NotFoundError
from .index import skill_key
from .storage import ObjectStore

logger = logging.getLogger("skrepo.cache")


def metadata_key(name: str, version: str) -> str:
    return f"skills/{name}/{version}/metadata.json"


class CacheMetadata(BaseModel):
    """Provenance stored next to each cached payload."""

    name: str
    version: str
    source: str
    cached_at: str


class SkillCache:
    """Read-through/write-through cache over any :class:`ObjectStore`.

    Args:
        store: Backing store, usually a filesystem directory.
    """

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    def get(self, name: str, version: str) -> Optional[bytes]:
        """Return the cached payload, or None on a miss."""
        try:
            return self.store.get(skill_key(name, version))
        except NotFoundError:
            return None

    def contains(self, name: str, version: str) -> bool:
        return self.store.exists(skill_key(name, version))

    def store_skill(self, name: str, version: str, data: bytes, source: str) -> str:
        """Write a payload and its metadata. Returns the payload key."""
        key = skill_key(name, version)
        self.store.put(key, data)
        meta = CacheMetadata(
            name=name,
            version=version,
            source=source,
            cached_at=datetime.now(timezone.utc).isoformat(),
        )
        self.store.put(metadata_key(name, version), meta.model_dump_json(indent=2).encode("utf-8"))
        logger.info("Cached %s v%s from %s", name, version, source)
        return key

    def metadata(self, name: str, version: str) -> Optional[CacheMetadata]:
        try:
            raw = self.store.get(metadata_key(name, version))
        except NotFoundError:
            return None
        try:
            return CacheMetadata.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring unreadable cache metadata for %s v%s", name, version)
            return None

    def remove(self, name: str, version: str) -> None:
        """Remove every cached key of one version."""
        for key in self.store.list(f"skills/{name}/{version}/"):
            self.store.delete(key)

    def remove_all(self, name: str) -> None:
        """Remove every cached version of a skill."""
        for key in self.store.list(f"skills/{name}/"):
            self.store.delete(key)

    def list_cached(self) -> list[tuple[str, str]]:
        """All cached ``(name, version)`` pairs, sorted."""
        entries: set[tuple[str, str]] = set()
        for key in self.store.list("skills/"):
            parts = key.split("/")
            if len(parts) == 4 and parts[3] == f"{parts[1]}.skill":
                entries.add((parts[1], parts[2]))
        return sorted(entries)

    def clear(self) -> int:
        """Remove every cached entry. Returns how many versions were dropped."""
        cached = self.list_cached()
        for key in self.store.list("skills/"):
            self.store.delete(key)
        return len(cached)
