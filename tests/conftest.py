"""Shared fixtures for skrepo tests."""

import io
import zipfile
from pathlib import Path
from textwrap import dedent

import pytest

SKILL_MD = dedent("""\
    ---
    name: test-skill
    description: A test skill covering the documentation of a fictional library API.
    ---

    # Test Skill
    """)


def make_skill_zip(name: str = "test-skill", body: str = "# Test\n") -> bytes:
    """Build an in-memory .skill archive rooted at ``<name>/``."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(f"{name}/SKILL.md", body)
        zf.writestr(f"{name}/references/api.md", "# API\n")
    return buf.getvalue()


@pytest.fixture
def skill_zip() -> bytes:
    return make_skill_zip()


@pytest.fixture
def skill_dir(tmp_path: Path) -> Path:
    """A valid skill directory with a reference file."""
    d = tmp_path / "test-skill"
    d.mkdir()
    (d / "SKILL.md").write_text(SKILL_MD)
    (d / "references").mkdir()
    (d / "references" / "api.md").write_text("# API\n")
    return d
