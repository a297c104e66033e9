"""Functional tests for reconciliation passes against a real database."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from skill_catalog.errors import PersistenceFailure
from skill_catalog.skills.reconciler import SkillReconciler
from skill_catalog.skills.types import DiscoveredSkill, SkillSource
from skill_catalog.storage.context import DatabaseContext
from tests.helpers import deny_stat, write_raw_skill_file, write_skill_file


@pytest.fixture
def reconciler(
    bundled_skills_path: Path, user_skills_path: Path, db_engine: AsyncEngine
) -> SkillReconciler:
    return SkillReconciler(
        bundled_skills_path, user_skills_path, db_engine, db_base_delay=0.0
    )


async def _persisted_keys(engine: AsyncEngine) -> set[tuple[SkillSource, str]]:
    async with DatabaseContext(engine=engine) as db:
        return {r.identity for r in await db.skills.list_all()}


class TestSkillReconciler:
    @pytest.mark.asyncio
    async def test_first_pass_inserts_everything(
        self,
        reconciler: SkillReconciler,
        bundled_skills_path: Path,
        user_skills_path: Path,
        db_engine: AsyncEngine,
    ) -> None:
        write_skill_file(bundled_skills_path, "official-skill")
        write_skill_file(user_skills_path, "custom-skill")

        result = await reconciler.run()

        assert result.inserted == 2
        assert result.updated == 0
        assert result.deleted == 0
        assert await _persisted_keys(db_engine) == {
            (SkillSource.OFFICIAL, "official-skill"),
            (SkillSource.CUSTOM, "custom-skill"),
        }

    @pytest.mark.asyncio
    async def test_second_pass_is_a_no_op(
        self, reconciler: SkillReconciler, bundled_skills_path: Path
    ) -> None:
        write_skill_file(bundled_skills_path, "a")
        write_skill_file(bundled_skills_path, "b")

        first = await reconciler.run()
        second = await reconciler.run()

        assert second.inserted == 0
        assert second.updated == 0
        assert second.deleted == 0
        assert second.unchanged == 2
        assert sorted(first.records, key=lambda r: r.identity_key) == sorted(
            second.records, key=lambda r: r.identity_key
        )

    @pytest.mark.asyncio
    async def test_content_change_updates_in_place(
        self, reconciler: SkillReconciler, bundled_skills_path: Path
    ) -> None:
        write_skill_file(bundled_skills_path, "a", description="Before")
        (before,) = (await reconciler.run()).records

        write_skill_file(bundled_skills_path, "a", description="After")
        result = await reconciler.run()

        assert result.updated == 1
        (after,) = result.records
        assert after.id == before.id
        assert after.description == "After"

    @pytest.mark.asyncio
    async def test_removed_files_are_deleted(
        self,
        reconciler: SkillReconciler,
        bundled_skills_path: Path,
        user_skills_path: Path,
        db_engine: AsyncEngine,
    ) -> None:
        official = write_skill_file(bundled_skills_path, "official")
        custom = write_skill_file(user_skills_path, "custom")
        await reconciler.run()

        official.unlink()
        custom.unlink()
        result = await reconciler.run()

        assert result.deleted == 2
        assert result.records == []
        assert await _persisted_keys(db_engine) == set()

    @pytest.mark.asyncio
    async def test_malformed_definition_is_skipped(
        self,
        reconciler: SkillReconciler,
        bundled_skills_path: Path,
        db_engine: AsyncEngine,
    ) -> None:
        write_skill_file(bundled_skills_path, "good")
        bad = write_raw_skill_file(bundled_skills_path, "bad", "no frontmatter here")

        result = await reconciler.run()

        assert result.inserted == 1
        assert result.skipped == 1
        assert result.skipped_paths == (bad,)
        assert await _persisted_keys(db_engine) == {(SkillSource.OFFICIAL, "good")}

    @pytest.mark.asyncio
    async def test_unreadable_subdirectory_is_skipped(
        self,
        reconciler: SkillReconciler,
        bundled_skills_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        write_skill_file(bundled_skills_path, "good")
        locked = bundled_skills_path / "locked"
        locked.mkdir()
        deny_stat(monkeypatch, "is_file", locked / "SKILL.md")

        result = await reconciler.run()

        assert result.inserted == 1
        assert result.skipped == 1
        assert [r.identity_key for r in result.records] == ["good"]

    @pytest.mark.asyncio
    async def test_missing_roots_contribute_nothing(
        self, tmp_path: Path, db_engine: AsyncEngine
    ) -> None:
        reconciler = SkillReconciler(tmp_path / "nope", tmp_path / "nada", db_engine)
        result = await reconciler.run()
        assert result.records == []

    @pytest.mark.asyncio
    async def test_duplicate_identity_keeps_first(
        self,
        bundled_skills_path: Path,
        user_skills_path: Path,
        db_engine: AsyncEngine,
        tmp_path: Path,
    ) -> None:
        first = write_skill_file(tmp_path / "one", "dup", name="First")
        second = write_skill_file(tmp_path / "two", "dup", name="Second")

        class DuplicatingReconciler(SkillReconciler):
            def discover(self) -> Iterator[DiscoveredSkill]:
                yield DiscoveredSkill(first, SkillSource.OFFICIAL, "dup")
                yield DiscoveredSkill(second, SkillSource.OFFICIAL, "dup")

        reconciler = DuplicatingReconciler(
            bundled_skills_path, user_skills_path, db_engine
        )
        result = await reconciler.run()

        assert result.conflicts == 1
        assert [r.name for r in result.records] == ["First"]

    @pytest.mark.asyncio
    async def test_storage_failure_raises_persistence_failure(
        self,
        reconciler: SkillReconciler,
        bundled_skills_path: Path,
        db_engine: AsyncEngine,
    ) -> None:
        write_skill_file(bundled_skills_path, "a")
        async with db_engine.begin() as conn:
            await conn.exec_driver_sql("DROP TABLE skills")

        with pytest.raises(PersistenceFailure):
            await reconciler.run()
