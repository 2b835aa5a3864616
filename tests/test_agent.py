"""Tests for agent framework targeting."""

from pathlib import Path

import pytest

from skrepo.agent import (
    AgentFramework,
    AgentTargetKind,
    detect_global_agents,
    detect_project_agents,
    parse_agent_flag,
    resolve_install_dirs,
)


class TestParseAgentFlag:
    """--agent values."""

    def test_default_is_auto(self):
        """No flag means detect from markers."""
        assert parse_agent_flag(None) == AgentTargetKind.AUTO

    def test_all(self):
        assert parse_agent_flag("all") == AgentTargetKind.ALL

    @pytest.mark.parametrize("value", ["claude", "opencode", "codex", "kiro"])
    def test_frameworks(self, value):
        """Each framework name parses to its enum member."""
        assert parse_agent_flag(value) == AgentFramework(value)

    def test_unknown(self):
        """Unsupported agent names are rejected."""
        with pytest.raises(ValueError, match="Unknown agent 'cursor'"):
            parse_agent_flag("cursor")


class TestDetection:
    """Marker-based framework detection."""

    def test_project_defaults_to_claude(self, tmp_path: Path):
        """A project with no markers installs for Claude."""
        assert detect_project_agents(tmp_path) == [AgentFramework.CLAUDE]

    def test_project_markers(self, tmp_path: Path):
        """Every matching marker adds its framework."""
        (tmp_path / ".kiro").mkdir()
        (tmp_path / "AGENTS.md").write_text("# agents")
        assert detect_project_agents(tmp_path) == [AgentFramework.CODEX, AgentFramework.KIRO]

    def test_global_markers(self, tmp_path: Path):
        """User-level config directories are detected."""
        (tmp_path / ".config" / "opencode").mkdir(parents=True)
        assert detect_global_agents(tmp_path) == [AgentFramework.OPENCODE]

    def test_global_defaults_to_claude(self, tmp_path: Path):
        assert detect_global_agents(tmp_path) == [AgentFramework.CLAUDE]


class TestResolveInstallDirs:
    """Directory selection priority."""

    def test_explicit_dir_wins(self, tmp_path: Path):
        """--install-dir overrides agent selection."""
        dirs = resolve_install_dirs(AgentTargetKind.ALL, tmp_path / "x", True, tmp_path, tmp_path)
        assert dirs == [tmp_path / "x"]

    def test_specific_project(self, tmp_path: Path):
        """A named framework uses its project directory."""
        dirs = resolve_install_dirs(AgentFramework.CODEX, None, False, tmp_path, tmp_path)
        assert dirs == [Path(".agents/skills")]

    def test_specific_global(self, tmp_path: Path):
        """--global switches to the user-level directory."""
        dirs = resolve_install_dirs(AgentFramework.OPENCODE, None, True, tmp_path, tmp_path / "home")
        assert dirs == [tmp_path / "home" / ".config" / "opencode" / "skills"]

    def test_all(self, tmp_path: Path):
        dirs = resolve_install_dirs(AgentTargetKind.ALL, None, False, tmp_path, tmp_path)
        assert dirs == [
            Path(".claude/skills"),
            Path(".opencode/skills"),
            Path(".agents/skills"),
            Path(".kiro/skills"),
        ]

    def test_auto_uses_detection(self, tmp_path: Path):
        """Auto mode follows the project markers."""
        (tmp_path / "opencode.json").write_text("{}")
        dirs = resolve_install_dirs(AgentTargetKind.AUTO, None, False, tmp_path, tmp_path)
        assert dirs == [Path(".opencode/skills")]

    def test_display_names(self):
        assert AgentFramework.OPENCODE.display_name == "OpenCode"
