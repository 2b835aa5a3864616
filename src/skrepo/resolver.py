"""Multi-source resolution: local repository -> remote repository -> GitHub.

Without a pinned source the resolver tries, in order:
    1. the local repository, if one is configured
    2. the remote repository, if one is configured
    3. GitHub releases, always

Any failure of steps 1 and 2 is logged and the next source is tried; the
GitHub attempt is final and its error is what the caller sees. Pinning a
source (``only=``) attempts that source alone and surfaces its error as is.
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import Callable, Optional, TypeVar

from pydantic import BaseModel

from .config import RuntimeContext
from .errors import ConfigError
from .install import GitHubReleases, InstallResult, extract_skill
from .repository import Repository

logger = logging.getLogger("skrepo.resolver")

T = TypeVar("T")


class InstallSource(str, enum.Enum):
    """Which source satisfied a resolution."""

    LOCAL = "local"
    REMOTE = "remote"
    FALLBACK = "fallback"


class ResolvedSkill(BaseModel):
    """A skill payload together with its provenance."""

    source: InstallSource
    name: str
    version: str
    data: bytes


class ResolvedInstall(BaseModel):
    """An installed skill together with its provenance."""

    source: InstallSource
    result: InstallResult


class SkillResolver:
    """Ordered-try resolver over borrowed repositories.

    Args:
        local: Local filesystem repository, if configured.
        remote: Remote (S3) repository, if configured.
        fallback: GitHub releases source (default repo when omitted).
    """

    def __init__(
        self,
        local: Optional[Repository] = None,
        remote: Optional[Repository] = None,
        fallback: Optional[GitHubReleases] = None,
    ) -> None:
        self.local = local
        self.remote = remote
        self.fallback = fallback or GitHubReleases()

    @classmethod
    def from_context(
        cls, ctx: RuntimeContext, github_repo: Optional[str] = None
    ) -> "SkillResolver":
        """Wire up the sources the configuration describes."""
        repo_config = ctx.repository
        local = remote = None
        if repo_config is not None:
            if repo_config.has_local():
                local = Repository.local(repo_config.local_repo_path(ctx.home))
            if repo_config.has_remote():
                remote = Repository.from_config(repo_config, ctx.home)
        return cls(local=local, remote=remote, fallback=GitHubReleases(github_repo))

    def resolve(
        self,
        name: str,
        version: Optional[str] = None,
        only: Optional[InstallSource] = None,
    ) -> ResolvedSkill:
        """Fetch a skill payload from the first source that has it."""
        source, (data, resolved) = self._run(
            name, only, lambda src: self._fetch(src, name, version)
        )
        return ResolvedSkill(source=source, name=name, version=resolved, data=data)

    def install(
        self,
        name: str,
        version: Optional[str],
        install_dir: Path,
        only: Optional[InstallSource] = None,
    ) -> ResolvedInstall:
        """Fetch and unpack a skill; an extraction failure also moves the cascade on."""
        source, result = self._run(
            name,
            only,
            lambda src: extract_skill(self._fetch(src, name, version)[0], install_dir),
        )
        return ResolvedInstall(source=source, result=result)

    def _run(
        self,
        name: str,
        only: Optional[InstallSource],
        attempt: Callable[[InstallSource], T],
    ) -> tuple[InstallSource, T]:
        if only is not None:
            return only, attempt(only)

        for source, repo in ((InstallSource.LOCAL, self.local), (InstallSource.REMOTE, self.remote)):
            if repo is None:
                continue
            try:
                return source, attempt(source)
            except Exception as exc:
                logger.info(
                    "Skill '%s' not available from %s repository (%s), trying next source...",
                    name, source.value, exc,
                )

        return InstallSource.FALLBACK, attempt(InstallSource.FALLBACK)

    def _fetch(self, source: InstallSource, name: str, version: Optional[str]) -> tuple[bytes, str]:
        if source == InstallSource.FALLBACK:
            return self.fallback.fetch(name, version)

        repo = self.local if source == InstallSource.LOCAL else self.remote
        if repo is None:
            raise ConfigError(f"No {source.value} repository configured")
        logger.info("Looking in %s repository...", source.value)
        return repo.download(name, version)
