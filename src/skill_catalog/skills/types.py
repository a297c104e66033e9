"""Skill types."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NamedTuple


class SkillSource(str, Enum):
    """Where a skill definition lives on disk."""

    OFFICIAL = "official"
    CUSTOM = "custom"


@dataclass(frozen=True)
class SkillDefinition:
    """A skill definition freshly parsed from disk."""

    name: str
    description: str
    body_text: str
    source_path: Path
    command: str | None = None
    verified: bool = False


class DiscoveredSkill(NamedTuple):
    """A candidate definition file found under one of the skill roots."""

    path: Path
    source: SkillSource
    relative_key: str

    @property
    def identity(self) -> tuple[SkillSource, str]:
        return (self.source, self.relative_key)


@dataclass(frozen=True)
class SkillRecord:
    """A skill as persisted in the catalog.

    ``id`` is ``None`` only for records that are about to be inserted; the
    repository assigns it.
    """

    id: str | None
    source: SkillSource
    identity_key: str
    name: str
    description: str
    body_text: str
    file_path: str
    command: str | None = None
    verified: bool = False
    is_enabled: bool = True

    @property
    def identity(self) -> tuple[SkillSource, str]:
        return (self.source, self.identity_key)

    @property
    def is_official(self) -> bool:
        return self.source is SkillSource.OFFICIAL
