"""Skills: discovery, parsing and reconciliation of the skill catalog."""

from skill_catalog.skills.frontmatter import parse_frontmatter
from skill_catalog.skills.manager import SkillsManager
from skill_catalog.skills.parser import parse_skill_content, parse_skill_definition
from skill_catalog.skills.reconciler import (
    SkillReconciler,
    SyncResult,
    build_sync_plan,
    merge_record,
)
from skill_catalog.skills.scanner import DEFINITION_FILENAME, discover_skill_files
from skill_catalog.skills.types import (
    DiscoveredSkill,
    SkillDefinition,
    SkillRecord,
    SkillSource,
)

__all__ = [
    "DEFINITION_FILENAME",
    "DiscoveredSkill",
    "SkillDefinition",
    "SkillReconciler",
    "SkillRecord",
    "SkillSource",
    "SkillsManager",
    "SyncResult",
    "build_sync_plan",
    "discover_skill_files",
    "merge_record",
    "parse_frontmatter",
    "parse_skill_content",
    "parse_skill_definition",
]
