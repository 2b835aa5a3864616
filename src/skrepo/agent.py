"""Agent targets — map an ``--agent`` choice to skill install directories.

Supported frameworks and where they read skills from:

    claude    .claude/skills      ~/.claude/skills
    opencode  .opencode/skills    ~/.config/opencode/skills
    codex     .agents/skills      ~/.codex/skills
    kiro      .kiro/skills        ~/.kiro/skills

Auto-detection looks for each framework's marker directories and files and
falls back to Claude when nothing is found.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional, Union


class AgentFramework(str, enum.Enum):
    """Agent frameworks skills can be installed for."""

    CLAUDE = "claude"
    OPENCODE = "opencode"
    CODEX = "codex"
    KIRO = "kiro"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def project_skills_dir(self) -> str:
        return _PROJECT_DIRS[self]

    def global_skills_dir(self, user_home: Path) -> Path:
        return user_home / _GLOBAL_DIRS[self]


_DISPLAY_NAMES = {
    AgentFramework.CLAUDE: "Claude",
    AgentFramework.OPENCODE: "OpenCode",
    AgentFramework.CODEX: "Codex",
    AgentFramework.KIRO: "Kiro",
}

_PROJECT_DIRS = {
    AgentFramework.CLAUDE: ".claude/skills",
    AgentFramework.OPENCODE: ".opencode/skills",
    AgentFramework.CODEX: ".agents/skills",
    AgentFramework.KIRO: ".kiro/skills",
}

_GLOBAL_DIRS = {
    AgentFramework.CLAUDE: ".claude/skills",
    AgentFramework.OPENCODE: ".config/opencode/skills",
    AgentFramework.CODEX: ".codex/skills",
    AgentFramework.KIRO: ".kiro/skills",
}

_PROJECT_DIR_MARKERS = {
    AgentFramework.CLAUDE: [".claude"],
    AgentFramework.OPENCODE: [".opencode"],
    AgentFramework.CODEX: [".codex"],
    AgentFramework.KIRO: [".kiro"],
}

_PROJECT_FILE_MARKERS = {
    AgentFramework.CLAUDE: ["CLAUDE.md"],
    AgentFramework.OPENCODE: ["opencode.json"],
    AgentFramework.CODEX: ["AGENTS.md"],
    AgentFramework.KIRO: [],
}

_GLOBAL_DIR_MARKERS = {
    AgentFramework.CLAUDE: [".claude"],
    AgentFramework.OPENCODE: [".config/opencode"],
    AgentFramework.CODEX: [".codex"],
    AgentFramework.KIRO: [".kiro"],
}

ALL_FRAMEWORKS = list(AgentFramework)


class AgentTargetKind(str, enum.Enum):
    ALL = "all"
    AUTO = "auto"


AgentTarget = Union[AgentFramework, AgentTargetKind]


def parse_agent_flag(value: Optional[str]) -> AgentTarget:
    """Parse an ``--agent`` value.

    Raises:
        ValueError: For unknown agent names.
    """
    if value is None:
        return AgentTargetKind.AUTO
    if value == "all":
        return AgentTargetKind.ALL
    try:
        return AgentFramework(value)
    except ValueError:
        valid = ", ".join(a.value for a in ALL_FRAMEWORKS)
        raise ValueError(f"Unknown agent '{value}'. Valid options: {valid}, all") from None


def detect_project_agents(project_root: Path) -> list[AgentFramework]:
    """Frameworks configured in *project_root*; Claude when none are."""
    found = [
        agent for agent in ALL_FRAMEWORKS
        if any((project_root / d).is_dir() for d in _PROJECT_DIR_MARKERS[agent])
        or any((project_root / f).exists() for f in _PROJECT_FILE_MARKERS[agent])
    ]
    return found or [AgentFramework.CLAUDE]


def detect_global_agents(user_home: Path) -> list[AgentFramework]:
    """Frameworks configured under the user's home; Claude when none are."""
    found = [
        agent for agent in ALL_FRAMEWORKS
        if any((user_home / d).is_dir() for d in _GLOBAL_DIR_MARKERS[agent])
    ]
    return found or [AgentFramework.CLAUDE]


def resolve_install_dirs(
    target: AgentTarget,
    explicit_dir: Optional[Path],
    global_: bool,
    project_root: Path,
    user_home: Path,
) -> list[Path]:
    """Resolve the directories a skill should be installed into.

    Priority:
        1. an explicit directory overrides everything
        2. a specific framework yields its directory
        3. ``all`` yields every framework's directory
        4. ``auto`` yields the directories of the detected frameworks
    """
    if explicit_dir is not None:
        return [explicit_dir]

    def agent_dir(agent: AgentFramework) -> Path:
        if global_:
            return agent.global_skills_dir(user_home)
        return Path(agent.project_skills_dir)

    if isinstance(target, AgentFramework):
        return [agent_dir(target)]
    if target == AgentTargetKind.ALL:
        return [agent_dir(a) for a in ALL_FRAMEWORKS]

    agents = detect_global_agents(user_home) if global_ else detect_project_agents(project_root)
    return [agent_dir(a) for a in agents]
