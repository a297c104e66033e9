"""
Utility functions for testing.
"""

import errno
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import pytest


def write_skill_file(
    base_path: Path,
    dir_name: str,
    *,
    name: str | None = None,
    description: str | None = None,
    command: str | None = None,
    verified: bool = False,
    body: str | None = None,
) -> Path:
    """Create ``base_path/dir_name/SKILL.md`` and return its path."""
    skill_dir = base_path / dir_name
    skill_dir.mkdir(parents=True, exist_ok=True)

    name = name or dir_name
    description = description or f"Description for {dir_name}"
    lines = ["---", f"name: {name}", f"description: {description}"]
    if command:
        lines.append(f"command: {command}")
    if verified:
        lines.append("verified: true")
    lines.append("---")
    lines.append("")
    lines.append(body if body is not None else f"# {name}\n\nThis is the skill content for {name}.")

    skill_file = skill_dir / "SKILL.md"
    skill_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return skill_file


def write_raw_skill_file(base_path: Path, dir_name: str, content: str) -> Path:
    """Create ``base_path/dir_name/SKILL.md`` with exactly ``content``."""
    skill_dir = base_path / dir_name
    skill_dir.mkdir(parents=True, exist_ok=True)
    skill_file = skill_dir / "SKILL.md"
    skill_file.write_text(content, encoding="utf-8")
    return skill_file


def deny_stat(monkeypatch: "pytest.MonkeyPatch", method: str, target: Path) -> None:
    """Make ``Path.<method>`` raise EACCES for ``target``.

    This is what pathlib does for entries inside a directory without
    search permission, which can't be reproduced when running as root.
    """
    original = getattr(Path, method)

    def denied(self: Path, *args: object, **kwargs: object) -> bool:
        if self == target:
            raise PermissionError(errno.EACCES, "Permission denied", str(self))
        return original(self, *args, **kwargs)

    monkeypatch.setattr(Path, method, denied)
