"""Repository for skill catalog storage operations."""

import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, insert, select, update

from skill_catalog.skills.types import SkillRecord, SkillSource
from skill_catalog.storage.repositories.base import BaseRepository
from skill_catalog.storage.skills import skills_table


class SkillsRepository(BaseRepository):
    """Repository for the persisted skill catalog.

    All methods run inside the owning :class:`DatabaseContext` transaction,
    so a failure anywhere in the ``async with`` block rolls back every
    statement issued through it.
    """

    async def list_all(self) -> list[SkillRecord]:
        """Retrieves every persisted skill."""
        result = await self._execute_with_logging("list_all", select(skills_table))
        return [_row_to_record(row) for row in result.mappings().all()]

    async def get_by_id(self, skill_id: str) -> SkillRecord | None:
        """Retrieves a single skill by its id."""
        stmt = select(skills_table).where(skills_table.c.id == skill_id)
        result = await self._execute_with_logging(f"get_by_id({skill_id})", stmt)
        row = result.mappings().one_or_none()
        return _row_to_record(row) if row else None

    async def insert(self, record: SkillRecord) -> SkillRecord:
        """Inserts a new skill, assigning it a fresh id."""
        now = datetime.now(timezone.utc)
        stored = replace(record, id=str(uuid.uuid4()))
        stmt = insert(skills_table).values(
            id=stored.id,
            source_kind=stored.source.value,
            identity_key=stored.identity_key,
            is_enabled=stored.is_enabled,
            created_at=now,
            updated_at=now,
            **_mutable_values(stored),
        )
        await self._execute_with_logging(f"insert({stored.identity_key})", stmt)
        self._logger.info(
            f"Inserted skill {stored.id} ({stored.source.value}/{stored.identity_key})"
        )
        return stored

    async def update(self, record: SkillRecord) -> bool:
        """Overwrites the parsed fields of an existing skill.

        ``source_kind``, ``identity_key`` and ``is_enabled`` are never
        written here.
        """
        if record.id is None:
            raise ValueError("Cannot update a skill record without an id")
        stmt = (
            update(skills_table)
            .where(skills_table.c.id == record.id)
            .values(updated_at=datetime.now(timezone.utc), **_mutable_values(record))
        )
        result = await self._execute_with_logging(f"update({record.id})", stmt)
        return result.rowcount > 0  # type: ignore[attr-defined]

    async def set_enabled(self, skill_id: str, enabled: bool) -> bool:
        """Sets the user-controlled enabled flag. Returns False if no row matched."""
        stmt = (
            update(skills_table)
            .where(skills_table.c.id == skill_id)
            .values(is_enabled=enabled, updated_at=datetime.now(timezone.utc))
        )
        result = await self._execute_with_logging(f"set_enabled({skill_id})", stmt)
        updated = result.rowcount > 0  # type: ignore[attr-defined]
        if updated:
            self._logger.info(f"Set skill {skill_id} enabled={enabled}")
        else:
            self._logger.warning(f"Skill not found for set_enabled: {skill_id}")
        return updated

    async def delete(self, skill_id: str) -> bool:
        """Deletes a skill by id."""
        stmt = delete(skills_table).where(skills_table.c.id == skill_id)
        result = await self._execute_with_logging(f"delete({skill_id})", stmt)
        deleted = result.rowcount > 0  # type: ignore[attr-defined]
        if deleted:
            self._logger.info(f"Deleted skill: {skill_id}")
        else:
            self._logger.warning(f"Skill not found for deletion: {skill_id}")
        return deleted

    async def apply_batch(
        self,
        inserts: Sequence[SkillRecord],
        updates: Sequence[SkillRecord],
        deletes: Sequence[SkillRecord],
    ) -> list[SkillRecord]:
        """Applies a reconciliation diff.

        Deletes run first so that a key freed in this batch can never
        collide with an insert. Atomicity comes from the surrounding
        transaction: the caller commits or rolls back the whole batch.

        Returns:
            The inserted records, carrying their newly assigned ids.
        """
        delete_ids = [r.id for r in deletes if r.id is not None]
        if delete_ids:
            stmt = delete(skills_table).where(skills_table.c.id.in_(delete_ids))
            await self._execute_with_logging("apply_batch.delete", stmt)

        for record in updates:
            await self.update(record)

        inserted = [await self.insert(record) for record in inserts]

        self._logger.info(
            f"Applied skill batch: {len(inserted)} inserted, "
            f"{len(updates)} updated, {len(delete_ids)} deleted"
        )
        return inserted


def _mutable_values(record: SkillRecord) -> dict[str, Any]:
    """Columns that mirror the latest parsed definition."""
    return {
        "name": record.name,
        "description": record.description,
        "command": record.command,
        "verified": record.verified,
        "body_text": record.body_text,
        "file_path": record.file_path,
    }


def _row_to_record(row: Any) -> SkillRecord:  # noqa: ANN401
    return SkillRecord(
        id=row["id"],
        source=SkillSource(row["source_kind"]),
        identity_key=row["identity_key"],
        name=row["name"],
        description=row["description"] or "",
        command=row["command"],
        verified=bool(row["verified"]),
        body_text=row["body_text"] or "",
        is_enabled=bool(row["is_enabled"]),
        file_path=row["file_path"],
    )
