"""Configuration — ``skills.json`` schema and runtime paths.

Resolution order for the config file:
    1. explicit ``--config`` path
    2. ``./skills.json`` in the project root
    3. ``<skrepo home>/skills.config.json`` (global, written by ``skrepo init``)
    4. an empty default config

The skrepo home is ``$SKREPO_HOME`` or ``~/.skill-builder``. All paths are
resolved once into a :class:`RuntimeContext` at process start and passed
down explicitly.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from . import SKREPO_HOME
from .errors import ConfigError

PROJECT_CONFIG_NAME = "skills.json"
GLOBAL_CONFIG_NAME = "skills.config.json"
DEFAULT_REGION = "us-east-1"


class SkillConfig(BaseModel):
    """A skill known to the project, used to fill index metadata on upload."""

    name: str
    description: str = ""
    llms_txt_url: str = ""


class LocalRepositoryConfig(BaseModel):
    """Local filesystem repository, optionally acting as the remote's cache."""

    path: Optional[str] = Field(default=None, description="Repository directory")
    cache: bool = Field(default=False, description="Use as a cache in front of the bucket")


class RepositoryConfig(BaseModel):
    """The ``repository`` section of skills.json."""

    name: Optional[str] = None
    bucket_name: Optional[str] = None
    region: str = DEFAULT_REGION
    endpoint: Optional[str] = None
    local: Optional[LocalRepositoryConfig] = None

    def has_remote(self) -> bool:
        return bool(self.bucket_name)

    def has_local(self) -> bool:
        return self.local is not None

    def local_is_cache(self) -> bool:
        """Local storage only caches when marked so and a bucket exists."""
        return self.local is not None and self.local.cache and self.has_remote()

    def local_repo_path(self, home: Path) -> Path:
        if self.local is not None and self.local.path:
            return Path(self.local.path).expanduser()
        return default_local_repo_path(home)


class Config(BaseModel):
    """Root of skills.json."""

    skills: list[SkillConfig] = Field(default_factory=list)
    repository: Optional[RepositoryConfig] = None

    def find_skill(self, name: str) -> Optional[SkillConfig]:
        for skill in self.skills:
            if skill.name == name:
                return skill
        return None

    def skill_names(self) -> list[str]:
        return [s.name for s in self.skills]


def default_home() -> Path:
    """Resolve the skrepo home directory, respecting SKREPO_HOME."""
    env = os.environ.get("SKREPO_HOME")
    if env:
        return Path(env).expanduser()
    return Path(SKREPO_HOME).expanduser()


def default_local_repo_path(home: Path) -> Path:
    return home / "local"


def global_config_path(home: Path) -> Path:
    return home / GLOBAL_CONFIG_NAME


def parse_config(content: str) -> Config:
    """Parse skills.json content.

    Raises:
        ConfigError: If the JSON is malformed or does not match the schema.
    """
    try:
        return Config.model_validate_json(content)
    except ValidationError as exc:
        raise ConfigError(f"Failed to parse config JSON: {exc}") from exc


def load_config(path: Path) -> Config:
    """Load a config file.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        content = Path(path).expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
    return parse_config(content)


def load_config_with_fallback(
    explicit: Optional[Path],
    project_root: Path,
    home: Path,
) -> Config:
    """Load the first config found along the resolution order."""
    if explicit is not None:
        return load_config(explicit)

    project = project_root / PROJECT_CONFIG_NAME
    if project.is_file():
        return load_config(project)

    global_path = global_config_path(home)
    if global_path.is_file():
        return load_config(global_path)

    return Config()


def write_global_config(home: Path, config: Config, force: bool = False) -> Path:
    """Write the global config file.

    Raises:
        ConfigError: If the file exists and force is False, or cannot be written.
    """
    path = global_config_path(home)
    if path.exists() and not force:
        raise ConfigError(f"Config already exists at {path}. Use force to overwrite.")
    try:
        home.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(config.model_dump_json(indent=2, exclude_none=True) + "\n", encoding="utf-8")
        tmp.replace(path)
    except OSError as exc:
        raise ConfigError(f"Failed to write config {path}: {exc}") from exc
    return path


class RuntimeContext(BaseModel):
    """Everything environment-dependent, resolved once per process.

    Args:
        config: Parsed skills.json.
        home: skrepo home (global config, default local repository).
        user_home: The user's home directory (global agent skill dirs).
        project_root: Directory used for project config and agent detection.
    """

    config: Config = Field(default_factory=Config)
    home: Path
    user_home: Path
    project_root: Path

    @classmethod
    def from_environment(
        cls,
        config_path: Optional[Path] = None,
        project_root: Optional[Path] = None,
    ) -> "RuntimeContext":
        home = default_home()
        root = project_root or Path.cwd()
        config = load_config_with_fallback(config_path, root, home)
        return cls(config=config, home=home, user_home=Path.home(), project_root=root)

    @property
    def repository(self) -> Optional[RepositoryConfig]:
        return self.config.repository

    def local_repo_path(self) -> Path:
        if self.config.repository is not None:
            return self.config.repository.local_repo_path(self.home)
        return default_local_repo_path(self.home)
