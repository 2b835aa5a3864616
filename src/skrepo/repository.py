"""Skill repository — object store + version index, with an optional cache.

Write paths run ``object writes -> index load -> mutate -> index save``;
read paths run ``index load -> store read``. The index is reloaded on every
call and nothing is locked, so two writers against one backend can lose an
update (last save wins).

Object layout::

    skills/<name>/<version>/<name>.skill
    skills/<name>/<version>/CHANGELOG.md
    source/<name>/<version>/<name>-source.zip
    skills_index.json
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .cache import SkillCache
from .config import RepositoryConfig
from .errors import ConfigError, NotFoundError, SkrepoError, StorageIOError
from .index import (
    SkillsIndex,
    changelog_key,
    load_index,
    save_index,
    skill_key,
    source_key,
    version_keys,
)
from .install import InstallResult, extract_skill
from .local_storage import FilesystemStore
from .package import create_source_archive
from .storage import ObjectStore

logger = logging.getLogger("skrepo.repository")


class Repository:
    """Upload, download, delete and list skills in one primary store.

    Args:
        store: Primary object store holding payloads and the index.
        cache: Optional cache consulted before, and filled after, primary reads.
    """

    def __init__(self, store: ObjectStore, cache: Optional[SkillCache] = None) -> None:
        self.store = store
        self.cache = cache

    @classmethod
    def from_config(cls, config: RepositoryConfig, home: Path) -> "Repository":
        """Build the remote repository described by the config.

        With a bucket, the primary store is S3 and a local section marked
        ``cache`` becomes its cache. Without a bucket the local directory is
        the primary store.

        Raises:
            ConfigError: If neither a bucket nor a local repository is configured.
        """
        if config.has_remote():
            from .s3 import S3Store

            cache = None
            if config.local_is_cache():
                cache = SkillCache(FilesystemStore(config.local_repo_path(home), create=True))
            return cls(S3Store.from_config(config), cache=cache)

        if config.has_local():
            return cls.local(config.local_repo_path(home))

        raise ConfigError("Repository config needs a bucket_name or a local section")

    @classmethod
    def local(cls, path: Path) -> "Repository":
        """Repository whose primary store is a local directory."""
        return cls(FilesystemStore(path))

    def upload(
        self,
        name: str,
        version: str,
        description: str,
        source_url: str,
        payload: bytes,
        changelog: Optional[str] = None,
        source_archive: Optional[bytes] = None,
    ) -> str:
        """Store a skill version and record it in the index.

        A failing write aborts the upload before the index is touched.
        Writes that already succeeded in the same call are not rolled back.

        Returns:
            str: The payload's object key.
        """
        key = skill_key(name, version)
        self.store.put(key, payload)
        logger.info("Uploaded %s", key)

        if changelog is not None:
            self.store.put(changelog_key(name, version), changelog.encode("utf-8"))
            logger.info("Uploaded %s", changelog_key(name, version))

        if source_archive is not None:
            self.store.put(source_key(name, version), source_archive)
            logger.info("Uploaded %s", source_key(name, version))

        index = load_index(self.store)
        updated = index.upsert(name, description, source_url, version, key)
        save_index(self.store, index)
        logger.info("%s index entry for %s", "Updated" if updated else "Created", name)
        return key

    def upload_file(
        self,
        name: str,
        version: str,
        description: str,
        source_url: str,
        skill_file: Path,
        changelog_file: Optional[Path] = None,
        source_dir: Optional[Path] = None,
    ) -> str:
        """Read a packaged skill (and optional extras) from disk and upload it."""
        try:
            payload = skill_file.read_bytes()
            changelog = changelog_file.read_text(encoding="utf-8") if changelog_file else None
        except OSError as exc:
            raise StorageIOError(f"Failed to read upload input: {exc}") from exc
        archive = create_source_archive(source_dir, name) if source_dir else None
        return self.upload(name, version, description, source_url, payload, changelog, archive)

    def download(self, name: str, version: Optional[str] = None) -> tuple[bytes, str]:
        """Fetch a skill payload.

        An explicit version that is cached is served without touching the
        primary store. Otherwise the index decides, and the payload read from
        the primary store is copied into the cache on a best-effort basis.

        Returns:
            tuple: (payload bytes, resolved version).

        Raises:
            NotFoundError: If the skill or version is not in the index.
        """
        if version is not None and self.cache is not None:
            cached = self.cache.get(name, version)
            if cached is not None:
                logger.info("Using cached %s v%s", name, version)
                return cached, version

        index = load_index(self.store)
        resolved = version or index.latest(name)
        if resolved is None:
            raise NotFoundError(f"Skill '{name}' not found in repository")

        if version is None and self.cache is not None:
            cached = self.cache.get(name, resolved)
            if cached is not None:
                logger.info("Using cached %s v%s", name, resolved)
                return cached, resolved

        key = index.locate(name, resolved)
        logger.info("Downloading %s v%s from %s", name, resolved, self.store.describe())
        data = self.store.get(key)

        if self.cache is not None:
            try:
                self.cache.store_skill(name, resolved, data, f"{self.store.describe()}/{key}")
            except SkrepoError as exc:
                logger.warning("Could not cache %s v%s: %s", name, resolved, exc)

        return data, resolved

    def download_to(
        self, name: str, version: Optional[str], output_dir: Path
    ) -> tuple[Path, str]:
        """Download a skill and write it to ``<output_dir>/<name>.skill``."""
        data, resolved = self.download(name, version)
        dest = output_dir / f"{name}.skill"
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(data)
        except OSError as exc:
            raise StorageIOError(f"Failed to write {dest}: {exc}") from exc
        return dest, resolved

    def install(self, name: str, version: Optional[str], install_dir: Path) -> InstallResult:
        """Download a skill and unpack it into *install_dir*."""
        data, _ = self.download(name, version)
        return extract_skill(data, install_dir)

    def delete(self, name: str, version: Optional[str] = None) -> bool:
        """Delete one version, or every version, of a skill.

        Object deletions are best-effort: failures are logged and skipped,
        and the index is saved once afterwards either way. Objects whose
        delete failed can outlive their index entry.

        Returns:
            bool: True if the index held what was asked to be deleted.
        """
        index = load_index(self.store)

        if version is not None:
            self._delete_objects(name, version)
            existed = index.remove_version(name, version)
        else:
            entry = index.find(name)
            for ver in list(entry.versions) if entry else []:
                self._delete_objects(name, ver)
            existed = index.remove(name)

        save_index(self.store, index)
        logger.info("Deleted %s of %s", f"version {version}" if version else "all versions", name)

        if self.cache is not None:
            try:
                if version is not None:
                    self.cache.remove(name, version)
                else:
                    self.cache.remove_all(name)
            except SkrepoError as exc:
                logger.warning("Could not clear cache for %s: %s", name, exc)

        return existed

    def list(self, skill_filter: Optional[str] = None) -> SkillsIndex:
        """The whole index, or a one-entry (possibly empty) index for *skill_filter*."""
        index = load_index(self.store)
        if skill_filter is None:
            return index
        entry = index.find(skill_filter)
        return SkillsIndex(skills=[entry] if entry is not None else [])

    def _delete_objects(self, name: str, version: str) -> None:
        for key in version_keys(name, version):
            try:
                self.store.delete(key)
            except SkrepoError as exc:
                logger.warning("Failed to delete %s: %s", key, exc)
