"""Tests for the skills index — versions, upsert/remove, persistence."""

import json

import pytest

from skrepo.errors import IndexSerializationError, NotFoundError
from skrepo.index import (
    INDEX_KEY,
    SkillsIndex,
    changelog_key,
    load_index,
    parse_version,
    save_index,
    skill_key,
    source_key,
)
from skrepo.storage import MemoryStore


class TestKeys:
    """Object key layout."""

    def test_layout(self):
        """Payload, changelog and source archive keys."""
        assert skill_key("foo", "1.0.0") == "skills/foo/1.0.0/foo.skill"
        assert changelog_key("foo", "1.0.0") == "skills/foo/1.0.0/CHANGELOG.md"
        assert source_key("foo", "1.0.0") == "source/foo/1.0.0/foo-source.zip"


class TestParseVersion:
    """Numeric version ordering."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1.2.3", (1, 2, 3)),
            ("v2.0.1", (2, 0, 1)),
            ("1.2", (1, 2, 0)),
            ("3", (3, 0, 0)),
            ("1.x.3", (1, 0, 3)),
            ("1.0.0-beta", (1, 0, 0)),
        ],
    )
    def test_parse(self, raw, expected):
        assert parse_version(raw) == expected

    def test_numeric_not_lexicographic(self):
        """1.10 sorts after 1.9."""
        assert parse_version("1.10.0") > parse_version("1.9.0")


class TestMutations:
    """upsert, remove, remove_version."""

    def test_upsert_creates_then_updates(self):
        """A second upsert refreshes metadata and adds the version."""
        index = SkillsIndex()
        assert index.upsert("a", "first", "https://x/llms.txt", "1.0.0", skill_key("a", "1.0.0")) is False
        assert index.upsert("a", "second", "https://y/llms.txt", "1.1.0", skill_key("a", "1.1.0")) is True

        entry = index.find("a")
        assert entry.description == "second"
        assert entry.source_url == "https://y/llms.txt"
        assert set(entry.versions) == {"1.0.0", "1.1.0"}
        assert len(index.skills) == 1

    def test_upsert_same_version_replaces_key(self):
        """Re-publishing a version replaces its key."""
        index = SkillsIndex()
        index.upsert("a", "", "", "1.0.0", "old")
        index.upsert("a", "", "", "1.0.0", "new")
        assert index.find("a").versions == {"1.0.0": "new"}

    def test_remove_version_cascades_to_entry(self):
        """Removing the last version removes the skill."""
        index = SkillsIndex()
        index.upsert("a", "", "", "1.0.0", skill_key("a", "1.0.0"))
        assert index.remove_version("a", "1.0.0") is True
        assert index.find("a") is None

    def test_remove_version_keeps_others(self):
        index = SkillsIndex()
        index.upsert("a", "", "", "1.0.0", "k1")
        index.upsert("a", "", "", "2.0.0", "k2")
        index.remove_version("a", "1.0.0")
        assert index.find("a").versions == {"2.0.0": "k2"}

    def test_remove_missing(self):
        """Removing unknown skills or versions reports False."""
        index = SkillsIndex()
        assert index.remove("nope") is False
        assert index.remove_version("nope", "1.0.0") is False


class TestLookup:
    """latest and locate."""

    def test_latest_uses_numeric_order(self):
        """latest and sorted_versions use numeric order."""
        index = SkillsIndex()
        for v in ["1.9.0", "1.10.0", "v1.2.0"]:
            index.upsert("a", "", "", v, skill_key("a", v))
        assert index.latest("a") == "1.10.0"
        assert index.find("a").sorted_versions() == ["1.10.0", "1.9.0", "v1.2.0"]

    def test_latest_unknown_skill(self):
        assert SkillsIndex().latest("a") is None

    def test_locate(self):
        """locate names the missing skill or version in its error."""
        index = SkillsIndex()
        index.upsert("a", "", "", "1.0.0", "skills/a/1.0.0/a.skill")
        assert index.locate("a", "1.0.0") == "skills/a/1.0.0/a.skill"
        with pytest.raises(NotFoundError, match="Version '2.0.0'"):
            index.locate("a", "2.0.0")
        with pytest.raises(NotFoundError, match="Skill 'b'"):
            index.locate("b", "1.0.0")


class TestPersistence:
    """load_index / save_index."""

    def test_missing_index_is_empty(self):
        """A store without an index reads as empty."""
        assert load_index(MemoryStore()).skills == []

    def test_save_uses_llms_txt_url_field(self):
        """The source URL is serialized as llms_txt_url."""
        store = MemoryStore()
        index = SkillsIndex()
        index.upsert("a", "desc", "https://x/llms.txt", "1.0.0", "skills/a/1.0.0/a.skill")
        save_index(store, index)

        doc = json.loads(store.get(INDEX_KEY))
        assert doc["skills"][0]["llms_txt_url"] == "https://x/llms.txt"
        assert "source_url" not in doc["skills"][0]

        loaded = load_index(store)
        assert loaded.find("a").source_url == "https://x/llms.txt"
        assert loaded.find("a").versions == {"1.0.0": "skills/a/1.0.0/a.skill"}

    def test_loads_minimal_document(self):
        """Optional entry fields default to empty strings."""
        store = MemoryStore()
        store.put(INDEX_KEY, b'{"skills": [{"name": "a", "versions": {"1.0.0": "k"}}]}')
        entry = load_index(store).find("a")
        assert entry.description == ""
        assert entry.source_url == ""

    @pytest.mark.parametrize("raw", [b"not json", b'{"skills": [{"versions": {}}]}'])
    def test_corrupt_index(self, raw):
        """Unparseable index content raises IndexSerializationError."""
        store = MemoryStore()
        store.put(INDEX_KEY, raw)
        with pytest.raises(IndexSerializationError):
            load_index(store)

    def test_round_trip(self):
        """A saved index loads back equal."""
        store = MemoryStore()
        index = SkillsIndex()
        index.upsert("a", "A", "https://a/llms.txt", "1.0.0", skill_key("a", "1.0.0"))
        index.upsert("a", "A", "https://a/llms.txt", "2.1.0", skill_key("a", "2.1.0"))
        index.upsert("b", "B", "", "0.1.0", skill_key("b", "0.1.0"))
        save_index(store, index)
        assert load_index(store) == index

    def test_latest_example(self):
        index = SkillsIndex()
        for v in ["1.0.0", "2.1.0", "1.5.0"]:
            index.upsert("s", "", "", v, skill_key("s", v))
        assert index.latest("s") == "2.1.0"
