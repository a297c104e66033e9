"""
Custom exceptions for the skill catalog.
"""

from pathlib import Path


class SkillCatalogError(Exception):
    """Base exception for all skill catalog errors."""


class MalformedDefinitionError(SkillCatalogError):
    """Raised when a single skill definition file cannot be read or parsed.

    Reconciliation treats this as "skip this candidate"; it never aborts a
    sync pass.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Malformed skill definition at {path}: {reason}")


class PersistenceFailure(SkillCatalogError):
    """Raised when the catalog store fails to read or apply changes.

    Any transaction that raised this has been rolled back.
    """


class SkillNotFoundError(SkillCatalogError, LookupError):
    """Raised when an operation references a skill id that is not in the catalog."""

    def __init__(self, skill_id: str) -> None:
        self.skill_id = skill_id
        super().__init__(f"Skill '{skill_id}' not found")
