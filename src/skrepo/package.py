"""Skill packaging — directories to ``.skill`` zip archives and back.

A ``.skill`` file is a deflated zip whose members all live under a single
top-level folder named after the skill directory::

    my-skill/SKILL.md
    my-skill/references/api.md
"""

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path

from pydantic import BaseModel

from .validate import ValidationResult, validate_skill

logger = logging.getLogger("skrepo.package")

SKIP_NAMES = {"__pycache__", ".DS_Store", "Thumbs.db"}
SKIP_SUFFIXES = {".pyc", ".pyo"}


class PackageResult(BaseModel):
    """Outcome of packaging a skill directory."""

    output_path: Path
    files_included: int
    validation: ValidationResult


def _should_skip(rel: Path) -> bool:
    if any(p.startswith(".") or p in SKIP_NAMES for p in rel.parts):
        return True
    return rel.suffix in SKIP_SUFFIXES


def collect_files(root: Path) -> list[Path]:
    """Files under *root* that belong in an archive, sorted."""
    files = [
        p for p in root.rglob("*")
        if p.is_file() and not p.is_symlink() and not _should_skip(p.relative_to(root))
    ]
    return sorted(files)


def zip_directory(root: Path, archive_root: str) -> tuple[bytes, int]:
    """Zip *root* under the *archive_root* folder.

    Returns:
        tuple: (zip bytes, number of files added).
    """
    files = collect_files(root)
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in files:
            rel = path.relative_to(root).as_posix()
            zf.write(path, arcname=f"{archive_root}/{rel}")
    return buf.getvalue(), len(files)


def create_source_archive(source_dir: Path, name: str) -> bytes:
    """Zip a documentation source directory under ``<name>-source/``.

    Raises:
        FileNotFoundError: If the directory does not exist.
    """
    if not source_dir.is_dir():
        raise FileNotFoundError(f"Source directory not found: {source_dir}")
    data, count = zip_directory(source_dir, f"{name}-source")
    logger.info("Archived %d source files for %s", count, name)
    return data


def package_skill(skill_dir: Path, output_dir: Path) -> PackageResult:
    """Validate a skill directory and write ``<dirname>.skill`` into *output_dir*.

    Args:
        skill_dir: The skill directory (its name becomes the archive root).
        output_dir: Where to write the archive.

    Returns:
        PackageResult: Archive path, file count and the validation result.

    Raises:
        FileNotFoundError: If the skill directory does not exist.
        ValueError: If validation fails.
    """
    skill_dir = skill_dir.expanduser().resolve()
    if not skill_dir.is_dir():
        raise FileNotFoundError(f"Skill directory not found: {skill_dir}")

    validation = validate_skill(skill_dir)
    if not validation.valid:
        raise ValueError("Skill validation failed: " + "; ".join(validation.errors))

    data, count = zip_directory(skill_dir, skill_dir.name)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"{skill_dir.name}.skill"
    output_path.write_bytes(data)
    logger.info("Packaged %s (%d files) -> %s", skill_dir.name, count, output_path)

    return PackageResult(output_path=output_path, files_included=count, validation=validation)


def list_skill_contents(skill_file: Path) -> list[str]:
    """Member names of a ``.skill`` archive, excluding directory entries."""
    with zipfile.ZipFile(skill_file) as zf:
        return [n for n in zf.namelist() if not n.endswith("/")]
