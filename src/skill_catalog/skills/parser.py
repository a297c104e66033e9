"""Parse a single on-disk skill definition into a :class:`SkillDefinition`.

A definition file is markdown with a YAML frontmatter header::

    ---
    name: Meeting Notes
    description: Format meeting notes.
    command: /notes
    verified: true
    ---
    # Instructions

Only ``name``, ``description``, ``command`` and ``verified`` are read from
the header. ``name`` falls back to the containing directory's name when it
is absent or blank; everything else falls back to an empty/false value.
"""

import logging
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from skill_catalog.errors import MalformedDefinitionError
from skill_catalog.skills.frontmatter import parse_frontmatter
from skill_catalog.skills.types import SkillDefinition

logger = logging.getLogger(__name__)

#: Default maximum definition file size in bytes (1 MB).
DEFAULT_MAX_DEFINITION_BYTES = 1024 * 1024

_TRUTHY_STRINGS = frozenset({"true", "yes", "1", "on"})


async def parse_skill_definition(
    path: Path, *, max_bytes: int = DEFAULT_MAX_DEFINITION_BYTES
) -> SkillDefinition:
    """Read and parse the definition file at ``path``.

    Raises:
        MalformedDefinitionError: If the file cannot be read, is too large,
            is empty, or its frontmatter header is not well-formed.
    """
    try:
        stat_result = await aiofiles.os.stat(path)
        if stat_result.st_size > max_bytes:
            raise MalformedDefinitionError(
                path, f"file exceeds maximum size ({max_bytes} bytes)"
            )
        async with aiofiles.open(path, encoding="utf-8") as f:
            raw = await f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedDefinitionError(path, f"unreadable: {e}") from e

    return parse_skill_content(raw, path)


def parse_skill_content(raw: str, path: Path) -> SkillDefinition:
    """Parse the text of a definition file that was read from ``path``.

    ``path`` is used for the name fallback and for diagnostics only.
    """
    content = raw.lstrip("\ufeff").replace("\r\n", "\n")
    if not content.strip():
        raise MalformedDefinitionError(path, "file is empty")

    frontmatter, body = parse_frontmatter(content)
    if frontmatter is None:
        raise MalformedDefinitionError(
            path, "missing or malformed frontmatter header"
        )

    name = _optional_text(frontmatter.get("name")) or path.parent.name
    if not name:
        raise MalformedDefinitionError(path, "no name and no containing directory")

    definition = SkillDefinition(
        name=name,
        description=_optional_text(frontmatter.get("description")) or "",
        command=_optional_text(frontmatter.get("command")),
        verified=_coerce_bool(frontmatter.get("verified")),
        body_text=body.strip(),
        source_path=path,
    )
    logger.debug("Parsed skill '%s' from %s", definition.name, path)
    return definition


def _optional_text(value: Any) -> str | None:  # noqa: ANN401
    if value is None or isinstance(value, dict | list):
        return None
    text = str(value).strip()
    return text or None


def _coerce_bool(value: Any) -> bool:  # noqa: ANN401
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return False
