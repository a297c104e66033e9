"""Reconcile skill definitions on disk with the persisted catalog.

One reconciliation pass:

1. Discover candidate files under the bundled root (``official``) and the
   user root (``custom``).
2. Parse each candidate. A malformed file is logged and skipped; it never
   aborts the pass.
3. Diff the parsed candidates against the persisted rows by identity
   ``(source, subdirectory name)``: unseen keys are inserted, matched keys
   are updated, persisted keys with no file on disk are deleted.
4. Apply the diff in a single transaction.

The user-controlled ``is_enabled`` flag only ever comes from the persisted
row; :func:`merge_record` is the one place that carries it forward.
"""

import itertools
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from skill_catalog.errors import MalformedDefinitionError, PersistenceFailure
from skill_catalog.skills.parser import (
    DEFAULT_MAX_DEFINITION_BYTES,
    parse_skill_definition,
)
from skill_catalog.skills.scanner import DEFINITION_FILENAME, discover_skill_files
from skill_catalog.skills.types import (
    DiscoveredSkill,
    SkillDefinition,
    SkillRecord,
    SkillSource,
)
from skill_catalog.storage.context import DatabaseContext

logger = logging.getLogger(__name__)

Identity = tuple[SkillSource, str]


@dataclass(frozen=True)
class ParsedCandidate:
    """A discovered file together with its parsed definition."""

    candidate: DiscoveredSkill
    definition: SkillDefinition


@dataclass
class CandidateScan:
    """Parsed candidates keyed by identity, plus what had to be skipped."""

    candidates: dict[Identity, ParsedCandidate] = field(default_factory=dict)
    skipped_paths: list[Path] = field(default_factory=list)
    conflict_paths: list[Path] = field(default_factory=list)


@dataclass
class SyncPlan:
    """The diff between parsed candidates and persisted rows."""

    inserts: list[SkillRecord] = field(default_factory=list)
    updates: list[SkillRecord] = field(default_factory=list)
    unchanged: list[SkillRecord] = field(default_factory=list)
    deletes: list[SkillRecord] = field(default_factory=list)


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one reconciliation pass."""

    records: list[SkillRecord]
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    deleted: int = 0
    skipped_paths: tuple[Path, ...] = ()
    conflicts: int = 0

    @property
    def skipped(self) -> int:
        """Number of malformed candidates that were skipped."""
        return len(self.skipped_paths)


def merge_record(
    existing: SkillRecord | None, parsed: ParsedCandidate
) -> SkillRecord:
    """Build the next catalog record for a parsed candidate.

    A new record starts enabled. For an existing record the id, source,
    identity key and enabled flag are kept; every other field is replaced
    by the freshly parsed values.
    """
    definition = parsed.definition
    if existing is None:
        return SkillRecord(
            id=None,
            source=parsed.candidate.source,
            identity_key=parsed.candidate.relative_key,
            name=definition.name,
            description=definition.description,
            command=definition.command,
            verified=definition.verified,
            body_text=definition.body_text,
            file_path=str(parsed.candidate.path),
            is_enabled=True,
        )
    return SkillRecord(
        id=existing.id,
        source=existing.source,
        identity_key=existing.identity_key,
        is_enabled=existing.is_enabled,
        name=definition.name,
        description=definition.description,
        command=definition.command,
        verified=definition.verified,
        body_text=definition.body_text,
        file_path=str(parsed.candidate.path),
    )


def build_sync_plan(
    candidates: dict[Identity, ParsedCandidate], persisted: Iterable[SkillRecord]
) -> SyncPlan:
    """Partition candidates and persisted rows into inserts, updates and deletes.

    Rows whose merged values equal the persisted values go to ``unchanged``
    and are not written.
    """
    plan = SyncPlan()
    persisted_by_identity = {record.identity: record for record in persisted}

    for identity, parsed in candidates.items():
        existing = persisted_by_identity.get(identity)
        merged = merge_record(existing, parsed)
        if existing is None:
            plan.inserts.append(merged)
        elif merged == existing:
            plan.unchanged.append(existing)
        else:
            plan.updates.append(merged)

    # A vanished file always removes its row, official or not.
    plan.deletes.extend(
        record
        for identity, record in persisted_by_identity.items()
        if identity not in candidates
    )
    return plan


class SkillReconciler:
    """Runs reconciliation passes between the skill roots and the catalog store."""

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
        self.bundled_skills_path = Path(bundled_skills_path)
        self.user_skills_path = Path(user_skills_path)
        self.engine = engine
        self.definition_filename = definition_filename
        self.max_definition_bytes = max_definition_bytes
        self._db_max_retries = db_max_retries
        self._db_base_delay = db_base_delay

    def db_context(self) -> DatabaseContext:
        """A new transactional context on the catalog store."""
        return DatabaseContext(
            self.engine, max_retries=self._db_max_retries, base_delay=self._db_base_delay
        )

    def discover(self) -> Iterator[DiscoveredSkill]:
        """All candidates, bundled root first, each root in sorted order."""
        return itertools.chain(
            discover_skill_files(
                self.bundled_skills_path,
                SkillSource.OFFICIAL,
                definition_filename=self.definition_filename,
            ),
            discover_skill_files(
                self.user_skills_path,
                SkillSource.CUSTOM,
                definition_filename=self.definition_filename,
            ),
        )

    async def scan(self) -> CandidateScan:
        """Discover and parse every candidate, skipping the ones that fail."""
        scan = CandidateScan()
        for candidate in self.discover():
            if candidate.identity in scan.candidates:
                kept = scan.candidates[candidate.identity].candidate.path
                logger.warning(
                    "Duplicate skill identity %s/%s at %s, keeping %s",
                    candidate.source.value,
                    candidate.relative_key,
                    candidate.path,
                    kept,
                )
                scan.conflict_paths.append(candidate.path)
                continue
            try:
                definition = await parse_skill_definition(
                    candidate.path, max_bytes=self.max_definition_bytes
                )
            except MalformedDefinitionError as e:
                logger.warning("Skipping skill definition %s: %s", e.path, e.reason)
                scan.skipped_paths.append(candidate.path)
                continue
            scan.candidates[candidate.identity] = ParsedCandidate(
                candidate=candidate, definition=definition
            )
        return scan

    async def run(self) -> SyncResult:
        """Run one reconciliation pass.

        Raises:
            PersistenceFailure: If loading or applying the diff failed. No
                change from this pass is committed in that case.
        """
        scan = await self.scan()

        try:
            async with self.db_context() as db:
                persisted = await db.skills.list_all()
                plan = build_sync_plan(scan.candidates, persisted)
                inserted = await db.skills.apply_batch(
                    plan.inserts, plan.updates, plan.deletes
                )
        except SQLAlchemyError as e:
            logger.error(f"Skill sync transaction failed: {e}", exc_info=True)
            raise PersistenceFailure(f"Skill sync transaction failed: {e}") from e

        result = SyncResult(
            records=[*inserted, *plan.updates, *plan.unchanged],
            inserted=len(inserted),
            updated=len(plan.updates),
            unchanged=len(plan.unchanged),
            deleted=len(plan.deletes),
            skipped_paths=tuple(scan.skipped_paths),
            conflicts=len(scan.conflict_paths),
        )
        logger.info(
            "Skill sync complete: %d inserted, %d updated, %d unchanged, "
            "%d deleted, %d skipped, %d conflicts",
            result.inserted,
            result.updated,
            result.unchanged,
            result.deleted,
            result.skipped,
            result.conflicts,
        )
        return result
