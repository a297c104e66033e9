"""Storage repository implementations."""

from .base import BaseRepository
from .skills import SkillsRepository

__all__ = [
    "BaseRepository",
    "SkillsRepository",
]
