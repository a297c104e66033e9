"""Public façade over the skill catalog.

:class:`SkillsManager` owns the in-memory index of the catalog. Every
mutating call (sync, toggle, add, delete) runs under a per-instance
``asyncio.Lock``, so at most one of them touches the filesystem or the
store at a time and they complete in the order they were awaited. Reads
(:meth:`SkillsManager.get_all_skills`, :meth:`SkillsManager.get_skill_by_id`)
never do I/O.
"""

import asyncio
import logging
import re
import shutil
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from skill_catalog.errors import PersistenceFailure, SkillNotFoundError
from skill_catalog.skills.parser import (
    DEFAULT_MAX_DEFINITION_BYTES,
    parse_skill_definition,
)
from skill_catalog.skills.reconciler import SkillReconciler, SyncResult
from skill_catalog.skills.scanner import DEFINITION_FILENAME
from skill_catalog.skills.types import SkillDefinition, SkillRecord, SkillSource

if TYPE_CHECKING:
    from skill_catalog.config_models import CatalogConfig

logger = logging.getLogger(__name__)

_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lowercase, hyphen-separated directory name for ``value``."""
    return _SLUG_INVALID.sub("-", value.lower()).strip("-")


class SkillsManager:
    """Catalog of official and custom skills, kept in sync with the store.

    Args:
        bundled_skills_path: Root of the read-only, application-shipped skills.
        user_skills_path: Root of the user-managed custom skills. Created on
            demand by :meth:`add_skill`.
        engine: Engine for the catalog store. The schema must already exist.

    Example::

        manager = SkillsManager(bundled, user, engine)
        await manager.initialize()
        for skill in manager.get_enabled_skills():
            print(skill.name)
    """

    def __init__(
        self,
        bundled_skills_path: Path,
        user_skills_path: Path,
        engine: AsyncEngine,
        *,
        definition_filename: str = DEFINITION_FILENAME,
        max_definition_bytes: int = DEFAULT_MAX_DEFINITION_BYTES,
        db_max_retries: int = 3,
        db_base_delay: float = 0.5,
    ) -> None:
        self._reconciler = SkillReconciler(
            bundled_skills_path,
            user_skills_path,
            engine,
            definition_filename=definition_filename,
            max_definition_bytes=max_definition_bytes,
            db_max_retries=db_max_retries,
            db_base_delay=db_base_delay,
        )
        self._skills: dict[str, SkillRecord] = {}
        self._lock = asyncio.Lock()
        self._ready = False

    @classmethod
    def from_config(
        cls, config: "CatalogConfig", engine: AsyncEngine | None = None
    ) -> "SkillsManager":
        """Build a manager from a :class:`CatalogConfig`."""
        if engine is None:
            from skill_catalog.storage.base import (
                create_engine_with_sqlite_optimizations,
            )

            engine = create_engine_with_sqlite_optimizations(config.database_url)
        return cls(
            config.bundled_skills_path,
            config.user_skills_path,
            engine,
            definition_filename=config.definition_filename,
            max_definition_bytes=config.max_definition_bytes,
            db_max_retries=config.db_max_retries,
            db_base_delay=config.db_base_delay,
        )

    def __repr__(self) -> str:
        n = len(self._skills)
        label = "skill" if n == 1 else "skills"
        return f"SkillsManager({n} {label})"

    @property
    def user_skills_path(self) -> Path:
        return self._reconciler.user_skills_path

    @property
    def bundled_skills_path(self) -> Path:
        return self._reconciler.bundled_skills_path

    @property
    def is_ready(self) -> bool:
        """True while the most recent sync pass succeeded."""
        return self._ready

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def initialize(self) -> SyncResult:
        """Run the first sync pass and populate the index.

        Calling this again behaves exactly like :meth:`resync`.
        """
        if self._ready:
            logger.debug("SkillsManager already initialized, resyncing")
        return await self.resync()

    async def resync(self) -> SyncResult:
        """Re-run reconciliation and replace the index with its result.

        Raises:
            PersistenceFailure: If the store could not be read or updated.
                The index keeps its previous contents, but the catalog is
                no longer ready until a later pass succeeds.
        """
        async with self._lock:
            try:
                result = await self._reconciler.run()
            except PersistenceFailure:
                self._ready = False
                raise
            self._skills = {
                record.id: record for record in result.records if record.id is not None
            }
            self._ready = True
            return result

    # ------------------------------------------------------------------
    # Reads (no I/O)
    # ------------------------------------------------------------------

    def get_all_skills(self) -> list[SkillRecord]:
        """Snapshot of the catalog, ordered by name."""
        return sorted(self._skills.values(), key=_sort_key)

    def get_enabled_skills(self) -> list[SkillRecord]:
        """Snapshot of the enabled skills, ordered by name."""
        return [skill for skill in self.get_all_skills() if skill.is_enabled]

    def get_skill_by_id(self, skill_id: str) -> SkillRecord | None:
        """Look up a skill by id. Returns ``None`` if it is not in the catalog."""
        return self._skills.get(skill_id)

    def get_skill_content(self, skill_id: str) -> str | None:
        """The instruction body of a skill, or ``None`` if it is not in the catalog."""
        skill = self._skills.get(skill_id)
        return skill.body_text if skill else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def set_skill_enabled(self, skill_id: str, enabled: bool) -> SkillRecord:
        """Persist the enabled flag of a skill.

        Raises:
            SkillNotFoundError: If ``skill_id`` is not in the catalog.
            PersistenceFailure: If the store could not be updated.
        """
        async with self._lock:
            skill = self._skills.get(skill_id)
            if skill is None:
                raise SkillNotFoundError(skill_id)

            try:
                async with self._reconciler.db_context() as db:
                    found = await db.skills.set_enabled(skill_id, enabled)
            except SQLAlchemyError as e:
                raise PersistenceFailure(
                    f"Failed to set enabled state of skill {skill_id}: {e}"
                ) from e

            if not found:
                # The row is gone from the store, so drop it from the index too.
                self._skills.pop(skill_id, None)
                raise SkillNotFoundError(skill_id)

            updated = replace(skill, is_enabled=enabled)
            self._skills[skill_id] = updated
            return updated

    async def add_skill(self, file_path: Path | str) -> SkillRecord:
        """Import a definition file as a new, enabled custom skill.

        The file is copied into a fresh subdirectory of the user root.

        Raises:
            MalformedDefinitionError: If the file does not parse. Nothing is
                copied in that case.
            PersistenceFailure: If the store could not be updated. The copied
                directory is removed again.
        """
        source = Path(file_path)
        async with self._lock:
            definition = await parse_skill_definition(
                source, max_bytes=self._reconciler.max_definition_bytes
            )
            target_dir = await asyncio.to_thread(
                self._allocate_skill_dir, definition, source
            )
            target_file = target_dir / self._reconciler.definition_filename

            try:
                await _copy_file(source, target_file)
                # Parse the copy so the record matches what later syncs will see.
                copied = await parse_skill_definition(
                    target_file, max_bytes=self._reconciler.max_definition_bytes
                )
                record = SkillRecord(
                    id=None,
                    source=SkillSource.CUSTOM,
                    identity_key=target_dir.name,
                    name=copied.name,
                    description=copied.description,
                    command=copied.command,
                    verified=copied.verified,
                    body_text=copied.body_text,
                    file_path=str(target_file.absolute()),
                    is_enabled=True,
                )
                async with self._reconciler.db_context() as db:
                    stored = await db.skills.insert(record)
            except SQLAlchemyError as e:
                await asyncio.to_thread(shutil.rmtree, target_dir, ignore_errors=True)
                raise PersistenceFailure(f"Failed to add skill from {source}: {e}") from e
            except Exception:
                await asyncio.to_thread(shutil.rmtree, target_dir, ignore_errors=True)
                raise

            self._skills[stored.id] = stored  # type: ignore[index]
            logger.info(
                "Added custom skill '%s' (%s) from %s", stored.name, stored.id, source
            )
            return stored

    async def delete_skill(self, skill_id: str) -> bool:
        """Delete a custom skill and its files.

        Returns:
            ``True`` if the skill was deleted. ``False`` if it is an official
            skill (those can't be deleted), not in the catalog, or already gone
            from the store.

        Raises:
            PersistenceFailure: If the store could not be updated.
        """
        async with self._lock:
            skill = self._skills.get(skill_id)
            if skill is None:
                logger.warning("Cannot delete skill %s: not found", skill_id)
                return False
            if skill.is_official:
                logger.warning("Refusing to delete official skill %s", skill_id)
                return False

            try:
                async with self._reconciler.db_context() as db:
                    found = await db.skills.delete(skill_id)
            except SQLAlchemyError as e:
                raise PersistenceFailure(f"Failed to delete skill {skill_id}: {e}") from e

            self._skills.pop(skill_id, None)
            if not found:
                # The row is already gone from the store. Leave the files alone.
                logger.warning("Cannot delete skill %s: not in the store", skill_id)
                return False
            await asyncio.to_thread(self._remove_skill_files, skill)
            logger.info("Deleted custom skill '%s' (%s)", skill.name, skill_id)
            return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _allocate_skill_dir(self, definition: SkillDefinition, source: Path) -> Path:
        """Create and return an unused subdirectory of the user root."""
        root = self.user_skills_path
        root.mkdir(parents=True, exist_ok=True)
        taken = {
            skill.identity_key
            for skill in self._skills.values()
            if skill.source is SkillSource.CUSTOM
        }
        base = slugify(definition.name) or slugify(source.parent.name) or "skill"
        suffix = 1
        while True:
            name = base if suffix == 1 else f"{base}-{suffix}"
            candidate = root / name
            if name not in taken and not candidate.exists():
                candidate.mkdir()
                return candidate
            suffix += 1

    def _remove_skill_files(self, skill: SkillRecord) -> None:
        path = Path(skill.file_path)
        skill_dir = path.parent
        root = self.user_skills_path.resolve()
        try:
            resolved_dir = skill_dir.resolve()
            if resolved_dir != root and resolved_dir.is_relative_to(root):
                shutil.rmtree(skill_dir)
            else:
                path.unlink(missing_ok=True)
        except OSError:
            logger.warning(
                "Failed to remove files for skill %s at %s",
                skill.id,
                skill_dir,
                exc_info=True,
            )


async def _copy_file(source: Path, target: Path) -> None:
    async with aiofiles.open(source, "rb") as src:
        data = await src.read()
    async with aiofiles.open(target, "wb") as dst:
        await dst.write(data)


def _sort_key(skill: SkillRecord) -> tuple[str, str]:
    return (skill.name.casefold(), skill.id or "")
