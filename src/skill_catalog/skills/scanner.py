"""Discover skill definition files under a skill root."""

import logging
from collections.abc import Iterator
from pathlib import Path

from skill_catalog.skills.types import DiscoveredSkill, SkillSource

logger = logging.getLogger(__name__)

DEFINITION_FILENAME = "SKILL.md"


def discover_skill_files(
    root: Path,
    source: SkillSource,
    *,
    definition_filename: str = DEFINITION_FILENAME,
) -> Iterator[DiscoveredSkill]:
    """Yield one candidate per immediate subdirectory of ``root``.

    Expected layout::

        root/
        ├── meeting-notes/
        │   ├── SKILL.md
        │   └── assets/
        └── another-skill/
            └── SKILL.md

    Subdirectories are visited in sorted name order. Hidden directories and
    directories without ``definition_filename`` are silently skipped. A
    subdirectory that cannot be inspected is still yielded, so the failure
    surfaces when the definition is read. A missing ``root`` contributes no
    candidates.
    """
    try:
        if not root.is_dir():
            logger.debug("Skill root %s does not exist, nothing to discover", root)
            return
        entries = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError:
        logger.warning("Failed to list skill root: %s", root, exc_info=True)
        return

    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            if not entry.is_dir():
                continue
        except OSError:
            logger.warning("Cannot stat %s, skipping", entry, exc_info=True)
            continue
        definition = entry / definition_filename
        try:
            if not definition.is_file():
                logger.debug("No %s in %s, skipping", definition_filename, entry)
                continue
        except OSError as e:
            # Unreadable directory: hand it on so the parser reports it as skipped.
            logger.debug("Cannot stat %s: %s", definition, e)
        yield DiscoveredSkill(
            path=definition.absolute(),
            source=source,
            relative_key=entry.name,
        )
