"""Skills index — the per-store JSON document of skills and versions.

Layout of ``skills_index.json``::

    {
      "skills": [
        {
          "name": "my-skill",
          "description": "...",
          "llms_txt_url": "https://example.com/llms.txt",
          "versions": {"1.0.0": "skills/my-skill/1.0.0/my-skill.skill"}
        }
      ]
    }

The index is the source of truth for which versions exist and where
their payloads live. An entry never exists with an empty ``versions`` map.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import IndexSerializationError, NotFoundError
from .storage import ObjectStore

INDEX_KEY = "skills_index.json"


def skill_key(name: str, version: str) -> str:
    """Object key of a packaged skill payload."""
    return f"skills/{name}/{version}/{name}.skill"


def changelog_key(name: str, version: str) -> str:
    return f"skills/{name}/{version}/CHANGELOG.md"


def source_key(name: str, version: str) -> str:
    return f"source/{name}/{version}/{name}-source.zip"


def version_keys(name: str, version: str) -> tuple[str, str, str]:
    """All object keys one uploaded version can occupy."""
    return skill_key(name, version), changelog_key(name, version), source_key(name, version)


def parse_version(version: str) -> tuple[int, int, int]:
    """Parse ``major.minor.patch`` into a numeric tuple.

    A leading ``v`` is ignored, missing components default to 0 and
    non-numeric components count as 0. Pre-release and build suffixes are
    not interpreted.
    """
    parts = version.strip().lstrip("vV").split(".")
    numbers: list[int] = []
    for part in parts[:3]:
        numbers.append(int(part) if part.isascii() and part.isdigit() else 0)
    while len(numbers) < 3:
        numbers.append(0)
    return numbers[0], numbers[1], numbers[2]


class IndexEntry(BaseModel):
    """One skill and the object key of each of its versions."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    source_url: str = Field(default="", alias="llms_txt_url")
    versions: dict[str, str] = Field(default_factory=dict)

    def sorted_versions(self) -> list[str]:
        """Versions newest first."""
        return sorted(self.versions, key=parse_version, reverse=True)


class SkillsIndex(BaseModel):
    """The whole index document."""

    skills: list[IndexEntry] = Field(default_factory=list)

    def find(self, name: str) -> Optional[IndexEntry]:
        for entry in self.skills:
            if entry.name == name:
                return entry
        return None

    def upsert(
        self,
        name: str,
        description: str,
        source_url: str,
        version: str,
        key: str,
    ) -> bool:
        """Add or replace ``version -> key`` for *name*.

        Returns:
            bool: True if an existing entry was updated, False if one was created.
        """
        entry = self.find(name)
        if entry is not None:
            entry.description = description
            entry.source_url = source_url
            entry.versions[version] = key
            return True

        self.skills.append(
            IndexEntry(
                name=name,
                description=description,
                source_url=source_url,
                versions={version: key},
            )
        )
        return False

    def remove(self, name: str) -> bool:
        before = len(self.skills)
        self.skills = [s for s in self.skills if s.name != name]
        return len(self.skills) < before

    def remove_version(self, name: str, version: str) -> bool:
        """Remove one version; drops the entry when no versions remain."""
        entry = self.find(name)
        if entry is None:
            return False
        existed = entry.versions.pop(version, None) is not None
        if not entry.versions:
            self.remove(name)
        return existed

    def latest(self, name: str) -> Optional[str]:
        entry = self.find(name)
        if entry is None or not entry.versions:
            return None
        return max(entry.versions, key=parse_version)

    def locate(self, name: str, version: str) -> str:
        """Return the object key recorded for ``name@version``.

        Raises:
            NotFoundError: If the skill or version is not indexed.
        """
        entry = self.find(name)
        if entry is None:
            raise NotFoundError(f"Skill '{name}' not found in repository")
        try:
            return entry.versions[version]
        except KeyError:
            raise NotFoundError(
                f"Version '{version}' not found for skill '{name}'"
            ) from None

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True)


def load_index(store: ObjectStore) -> SkillsIndex:
    """Load the index from *store*.

    A missing index is a valid empty one. Any other read failure is raised.

    Raises:
        IndexSerializationError: If the stored index cannot be parsed.
    """
    try:
        raw = store.get(INDEX_KEY)
    except NotFoundError:
        return SkillsIndex()

    try:
        return SkillsIndex.model_validate_json(raw)
    except ValidationError as exc:
        raise IndexSerializationError(f"Failed to parse skills index: {exc}") from exc


def save_index(store: ObjectStore, index: SkillsIndex) -> None:
    """Serialize the whole index and overwrite it in *store*."""
    try:
        payload = index.to_json().encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise IndexSerializationError(f"Failed to serialize skills index: {exc}") from exc
    store.put(INDEX_KEY, payload)
