"""Platform-appropriate base directories for the skill catalog.

All application paths are derived from a :class:`PlatformConfig`, so tests
and packaged builds can point the catalog somewhere else without touching
the rest of the code.
"""

import logging
import os
import platform
import sys
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformConfig:
    """Where the application keeps its data on this machine."""

    user_data_path: Path
    temp_path: Path
    is_packaged: bool
    platform: str
    arch: str
    resources_path: Path | None = None


def default_user_data_dir(app_name: str) -> Path:
    """Per-user data directory for ``app_name``.

    Resolution order:
    1. ``%APPDATA%`` on Windows, ``~/Library/Application Support`` on macOS.
    2. ``$XDG_DATA_HOME`` elsewhere.
    3. ``~/.local/share`` as the final fallback.
    """
    if sys.platform == "win32":
        appdata = os.getenv("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        xdg = os.getenv("XDG_DATA_HOME")
        base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / app_name


def create_default_platform_config(
    app_name: str,
    **overrides: Any,  # noqa: ANN401
) -> PlatformConfig:
    """Build a :class:`PlatformConfig` for the current machine.

    Keyword arguments override individual fields, e.g.
    ``create_default_platform_config("App", user_data_path="/data")``.
    """
    config = PlatformConfig(
        user_data_path=default_user_data_dir(app_name),
        temp_path=Path(tempfile.gettempdir()),
        is_packaged=False,
        platform=sys.platform,
        arch=platform.machine(),
    )
    if not overrides:
        return config

    for key in ("user_data_path", "temp_path", "resources_path"):
        if overrides.get(key) is not None:
            overrides[key] = Path(overrides[key])
    return replace(config, **overrides)


def resolve_user_data_path(config: PlatformConfig, *parts: str) -> Path:
    """Join ``parts`` onto the user data directory."""
    return config.user_data_path.joinpath(*parts)


def resolve_resources_path(config: PlatformConfig, *parts: str) -> Path | None:
    """Join ``parts`` onto the resources directory, or ``None`` if it is unknown."""
    if config.resources_path is None:
        return None
    return config.resources_path.joinpath(*parts)
