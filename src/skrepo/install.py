"""Skill installation — archive extraction and the GitHub releases fallback.

Release assets are fetched from::

    https://github.com/<repo>/releases/download/v<version>/<name>.skill
    https://github.com/<repo>/releases/latest/download/<name>.skill
"""

from __future__ import annotations

import io
import logging
import urllib.error
import urllib.request
import zipfile
from pathlib import Path, PurePosixPath
from typing import Optional

from pydantic import BaseModel

from . import __version__
from .errors import NotFoundError, RemoteTransportError, StorageIOError

logger = logging.getLogger("skrepo.install")

DEFAULT_REPO = "antstanley/skill-builder"
DEFAULT_INSTALL_DIR = ".claude/skills"
HTTP_TIMEOUT_S = 60


class InstallResult(BaseModel):
    """Where a skill archive was unpacked."""

    skill_name: str
    install_path: Path
    files_extracted: int


def get_release_url(name: str, version: Optional[str] = None, repo: Optional[str] = None) -> str:
    """Build the GitHub release asset URL for a skill.

    Args:
        name: Skill name.
        version: Release version without the ``v`` tag prefix; latest if None.
        repo: ``owner/repo`` id (default: DEFAULT_REPO).
    """
    repo = repo or DEFAULT_REPO
    if version:
        return f"https://github.com/{repo}/releases/download/v{version}/{name}.skill"
    return f"https://github.com/{repo}/releases/latest/download/{name}.skill"


def _safe_member(name: str) -> PurePosixPath:
    path = PurePosixPath(name)
    if path.is_absolute() or ".." in path.parts or name.startswith("\\"):
        raise ValueError(f"Unsafe path in skill archive: {name}")
    return path


def extract_skill(data: bytes, install_dir: Path) -> InstallResult:
    """Unpack a ``.skill`` archive into *install_dir*.

    The skill name is the first path component of the first member.

    Raises:
        ValueError: If the archive is corrupt, empty, or has unsafe member paths.
        StorageIOError: If files cannot be written.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise ValueError(f"Not a valid skill archive: {exc}") from exc

    with archive:
        members = archive.infolist()
        if not members:
            raise ValueError("Skill archive is empty")
        for info in members:
            _safe_member(info.filename)

        skill_name = _safe_member(members[0].filename).parts[0]
        extracted = 0
        try:
            install_dir.mkdir(parents=True, exist_ok=True)
            for info in members:
                target = install_dir.joinpath(*_safe_member(info.filename).parts)
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(archive.read(info))
                extracted += 1
                logger.debug("Extracted %s", info.filename)
        except OSError as exc:
            raise StorageIOError(f"Failed to extract skill into {install_dir}: {exc}") from exc

    install_path = install_dir / skill_name
    logger.info("Installed %s to %s (%d files)", skill_name, install_path, extracted)
    return InstallResult(skill_name=skill_name, install_path=install_path, files_extracted=extracted)


def install_from_file(skill_file: Path, install_dir: Path) -> InstallResult:
    """Install a local ``.skill`` file.

    Raises:
        NotFoundError: If the file does not exist.
    """
    try:
        data = skill_file.read_bytes()
    except FileNotFoundError:
        raise NotFoundError(f"Skill file not found: {skill_file}") from None
    except OSError as exc:
        raise StorageIOError(f"Failed to read {skill_file}: {exc}") from exc
    return extract_skill(data, install_dir)


class GitHubReleases:
    """Upstream fallback source serving ``.skill`` assets from GitHub releases.

    Args:
        repo: ``owner/repo`` id publishing the releases.
        timeout_s: HTTP timeout per request.
    """

    def __init__(self, repo: Optional[str] = None, timeout_s: float = HTTP_TIMEOUT_S) -> None:
        self.repo = repo or DEFAULT_REPO
        self.timeout_s = timeout_s

    def _http_get_bytes(self, url: str) -> bytes:
        """Download *url* and return the body.

        Raises:
            NotFoundError: On HTTP 404.
            RemoteTransportError: On any other HTTP or network failure.
        """
        req = urllib.request.Request(url, headers={"User-Agent": f"skrepo/{__version__}"})
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_s) as resp:
                return resp.read()
        except urllib.error.HTTPError as exc:
            if exc.code == 404:
                raise NotFoundError(f"No release asset at {url}") from exc
            raise RemoteTransportError(f"Failed to download {url}", exc.code) from exc
        except (urllib.error.URLError, OSError) as exc:
            raise RemoteTransportError(f"Failed to download {url}: {exc}") from exc

    def fetch(self, name: str, version: Optional[str] = None) -> tuple[bytes, str]:
        """Download a skill release.

        Returns:
            tuple: (archive bytes, version label, ``"latest"`` when unpinned).
        """
        url = get_release_url(name, version, self.repo)
        logger.info("Downloading %s from %s", name, url)
        return self._http_get_bytes(url), version or "latest"
