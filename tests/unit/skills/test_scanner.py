"""Tests for skill file discovery."""

from pathlib import Path

import pytest

from skill_catalog.skills.scanner import discover_skill_files
from skill_catalog.skills.types import SkillSource
from tests.helpers import deny_stat, write_skill_file


class TestDiscoverSkillFiles:
    def test_one_candidate_per_subdirectory(self, tmp_path: Path) -> None:
        write_skill_file(tmp_path, "b-skill")
        write_skill_file(tmp_path, "a-skill")
        candidates = list(discover_skill_files(tmp_path, SkillSource.OFFICIAL))
        assert [c.relative_key for c in candidates] == ["a-skill", "b-skill"]
        assert all(c.source is SkillSource.OFFICIAL for c in candidates)
        assert candidates[0].path == (tmp_path / "a-skill" / "SKILL.md").absolute()
        assert candidates[0].path.is_absolute()

    def test_identity(self, tmp_path: Path) -> None:
        write_skill_file(tmp_path, "mine")
        (candidate,) = discover_skill_files(tmp_path, SkillSource.CUSTOM)
        assert candidate.identity == (SkillSource.CUSTOM, "mine")

    def test_missing_root(self, tmp_path: Path) -> None:
        assert list(discover_skill_files(tmp_path / "nope", SkillSource.CUSTOM)) == []

    def test_root_is_a_file(self, tmp_path: Path) -> None:
        root = tmp_path / "file"
        root.write_text("not a directory")
        assert list(discover_skill_files(root, SkillSource.CUSTOM)) == []

    def test_skips_directories_without_definition(self, tmp_path: Path) -> None:
        (tmp_path / "assets").mkdir()
        (tmp_path / "assets" / "logo.png").write_bytes(b"\x89PNG")
        write_skill_file(tmp_path, "real")
        candidates = list(discover_skill_files(tmp_path, SkillSource.OFFICIAL))
        assert [c.relative_key for c in candidates] == ["real"]

    def test_skips_files_and_hidden_directories(self, tmp_path: Path) -> None:
        (tmp_path / "SKILL.md").write_text("---\nname: Root level\n---\n")
        write_skill_file(tmp_path, ".hidden")
        write_skill_file(tmp_path, "visible")
        candidates = list(discover_skill_files(tmp_path, SkillSource.OFFICIAL))
        assert [c.relative_key for c in candidates] == ["visible"]

    def test_custom_definition_filename(self, tmp_path: Path) -> None:
        skill_dir = tmp_path / "alt"
        skill_dir.mkdir()
        (skill_dir / "definition.md").write_text("---\nname: Alt\n---\n")
        write_skill_file(tmp_path, "default")
        candidates = list(
            discover_skill_files(
                tmp_path, SkillSource.OFFICIAL, definition_filename="definition.md"
            )
        )
        assert [c.relative_key for c in candidates] == ["alt"]

    def test_is_lazy(self, tmp_path: Path) -> None:
        write_skill_file(tmp_path, "one")
        write_skill_file(tmp_path, "two")
        iterator = discover_skill_files(tmp_path, SkillSource.OFFICIAL)
        assert next(iterator).relative_key == "one"
        assert next(iterator).relative_key == "two"

    def test_unreadable_subdirectory_is_still_yielded(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        write_skill_file(tmp_path, "good")
        locked = tmp_path / "locked"
        locked.mkdir()
        deny_stat(monkeypatch, "is_file", locked / "SKILL.md")

        candidates = list(discover_skill_files(tmp_path, SkillSource.OFFICIAL))

        assert [c.relative_key for c in candidates] == ["good", "locked"]

    def test_entry_that_cannot_be_stat_is_skipped(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        write_skill_file(tmp_path, "good")
        broken = tmp_path / "broken"
        broken.mkdir()
        deny_stat(monkeypatch, "is_dir", broken)

        candidates = list(discover_skill_files(tmp_path, SkillSource.OFFICIAL))

        assert [c.relative_key for c in candidates] == ["good"]
