"""Tests for skill validation and packaging."""

import zipfile
from pathlib import Path

import pytest

from skrepo.package import create_source_archive, list_skill_contents, package_skill
from skrepo.validate import parse_frontmatter, validate_skill


class TestParseFrontmatter:
    """YAML frontmatter extraction."""

    def test_mapping(self):
        """Frontmatter parses into a dict."""
        data = parse_frontmatter("---\nname: x\ndescription: y\n---\n# Body\n")
        assert data == {"name": "x", "description": "y"}

    @pytest.mark.parametrize(
        "content, message",
        [
            ("# No frontmatter\n", "missing YAML frontmatter"),
            ("---\n\n---\n", "empty"),
            ("---\n- a\n- b\n---\n", "mapping"),
            ("---\nname: [unclosed\n---\n", "Invalid YAML"),
        ],
    )
    def test_errors(self, content, message):
        """Bad frontmatter raises ValueError with a useful message."""
        with pytest.raises(ValueError, match=message):
            parse_frontmatter(content)


class TestValidateSkill:
    """Directory-level validation."""

    def test_valid(self, skill_dir: Path):
        """A complete skill has no errors or warnings."""
        result = validate_skill(skill_dir)
        assert result.valid
        assert result.errors == []
        assert result.warnings == []

    def test_missing_skill_md(self, tmp_path: Path):
        result = validate_skill(tmp_path)
        assert not result.valid
        assert result.errors == ["SKILL.md not found"]

    def test_short_description(self, skill_dir: Path):
        """Descriptions under 50 characters are errors."""
        (skill_dir / "SKILL.md").write_text("---\nname: x\ndescription: too short\n---\n")
        result = validate_skill(skill_dir)
        assert not result.valid
        assert "at least 50 characters" in result.errors[0]

    def test_missing_name(self, skill_dir: Path):
        (skill_dir / "SKILL.md").write_text("---\ndescription: " + "d" * 60 + "\n---\n")
        assert "Frontmatter missing 'name' field" in validate_skill(skill_dir).errors

    def test_todo_placeholder(self, skill_dir: Path):
        """Leftover [TODO] markers are errors."""
        content = (skill_dir / "SKILL.md").read_text() + "\n[TODO: fill in]\n"
        (skill_dir / "SKILL.md").write_text(content)
        assert any("[TODO]" in e for e in validate_skill(skill_dir).errors)

    def test_empty_references_warns(self, skill_dir: Path):
        """An empty references/ folder only warns."""
        (skill_dir / "references" / "api.md").unlink()
        result = validate_skill(skill_dir)
        assert result.valid
        assert result.warnings == ["References directory is empty"]


class TestPackageSkill:
    """Building .skill archives."""

    def test_package(self, skill_dir: Path, tmp_path: Path):
        """The archive is rooted at the skill name."""
        result = package_skill(skill_dir, tmp_path / "dist")
        assert result.output_path == tmp_path / "dist" / "test-skill.skill"
        assert result.files_included == 2
        assert list_skill_contents(result.output_path) == [
            "test-skill/SKILL.md",
            "test-skill/references/api.md",
        ]

    def test_skips_junk(self, skill_dir: Path, tmp_path: Path):
        """Hidden files and bytecode are left out."""
        (skill_dir / ".hidden").write_text("x")
        (skill_dir / "__pycache__").mkdir()
        (skill_dir / "__pycache__" / "mod.pyc").write_bytes(b"x")
        (skill_dir / "tool.pyc").write_bytes(b"x")
        (skill_dir / ".DS_Store").write_bytes(b"x")

        result = package_skill(skill_dir, tmp_path / "dist")
        assert result.files_included == 2

    def test_invalid_skill_refused(self, skill_dir: Path, tmp_path: Path):
        """Validation errors stop packaging before dist/ is created."""
        (skill_dir / "SKILL.md").write_text("# no frontmatter\n")
        with pytest.raises(ValueError, match="validation failed"):
            package_skill(skill_dir, tmp_path / "dist")
        assert not (tmp_path / "dist").exists()

    def test_missing_dir(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            package_skill(tmp_path / "nope", tmp_path / "dist")


class TestSourceArchive:
    """Documentation source archives."""

    def test_archive_root(self, tmp_path: Path):
        """Source archives are rooted at <name>-source/."""
        docs = tmp_path / "docs"
        (docs / "guide").mkdir(parents=True)
        (docs / "index.md").write_text("# Index\n")
        (docs / "guide" / "intro.md").write_text("# Intro\n")

        data = create_source_archive(docs, "alpha")

        out = tmp_path / "alpha-source.zip"
        out.write_bytes(data)
        with zipfile.ZipFile(out) as zf:
            assert sorted(zf.namelist()) == [
                "alpha-source/guide/intro.md",
                "alpha-source/index.md",
            ]

    def test_missing_dir(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            create_source_archive(tmp_path / "nope", "alpha")
