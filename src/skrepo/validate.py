"""Skill validation — SKILL.md frontmatter and directory structure checks.

A valid skill directory has a SKILL.md that starts with YAML frontmatter
declaring a non-empty ``name`` and a ``description`` of at least
``MIN_DESCRIPTION_LENGTH`` characters. Unresolved ``[TODO`` placeholders
fail validation; a missing or empty ``references/`` directory only warns.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

MIN_DESCRIPTION_LENGTH = 50

_FRONTMATTER_RE = re.compile(r"\A---\r?\n(.*?)\r?\n---", re.DOTALL)


class ValidationResult(BaseModel):
    """Outcome of validating one skill directory."""

    valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.valid = False
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)


def parse_frontmatter(content: str) -> dict[str, Any]:
    """Extract the YAML frontmatter mapping from markdown content.

    Args:
        content: Full SKILL.md text.

    Returns:
        dict: The parsed frontmatter.

    Raises:
        ValueError: If the frontmatter is missing, empty, or not a YAML mapping.
    """
    match = _FRONTMATTER_RE.match(content)
    if match is None:
        raise ValueError("SKILL.md missing YAML frontmatter (must start with ---)")

    body = match.group(1)
    if not body.strip():
        raise ValueError("Frontmatter is empty")

    try:
        data = yaml.safe_load(body)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML frontmatter: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Frontmatter must be a YAML mapping, got {type(data).__name__}")
    return data


def validate_skill(skill_dir: Path) -> ValidationResult:
    """Validate a skill directory.

    Args:
        skill_dir: Directory containing SKILL.md.

    Returns:
        ValidationResult: Errors make the skill invalid; warnings do not.
    """
    result = ValidationResult()
    skill_md = skill_dir / "SKILL.md"
    if not skill_md.is_file():
        result.add_error("SKILL.md not found")
        return result

    try:
        content = skill_md.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        result.add_error(f"Failed to read SKILL.md: {exc}")
        return result

    try:
        frontmatter = parse_frontmatter(content)
    except ValueError as exc:
        result.add_error(str(exc))
        return result

    name = frontmatter.get("name")
    if name is None:
        result.add_error("Frontmatter missing 'name' field")
    elif not str(name).strip():
        result.add_error("Frontmatter 'name' field is empty")

    description = frontmatter.get("description")
    if description is None:
        result.add_error("Frontmatter missing 'description' field")
    else:
        desc = str(description).strip()
        if not desc:
            result.add_error("Frontmatter 'description' field is empty")
        elif len(desc) < MIN_DESCRIPTION_LENGTH:
            result.add_error(
                f"Frontmatter 'description' should be at least "
                f"{MIN_DESCRIPTION_LENGTH} characters (got {len(desc)})"
            )

    if "[TODO" in content:
        result.add_error("SKILL.md contains unresolved [TODO] placeholders")

    references = skill_dir / "references"
    if not references.exists():
        result.add_warning("No references directory found")
    elif references.is_dir() and not any(references.iterdir()):
        result.add_warning("References directory is empty")

    return result
