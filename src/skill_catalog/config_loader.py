"""Configuration loading with clear priority hierarchy.

Configuration is loaded in the following priority order (lowest to highest):
1. Pydantic model defaults (defined in config_models.py), with skill roots
   derived from the platform layout in paths.py
2. config.yaml file
3. Environment variables
"""

from __future__ import annotations

import logging
import os
import pathlib
from dataclasses import dataclass
from typing import Any

import yaml
from dotenv import load_dotenv

from skill_catalog.config_models import CatalogConfig
from skill_catalog.paths import (
    PlatformConfig,
    create_default_platform_config,
    resolve_resources_path,
    resolve_user_data_path,
)

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "skill-catalog"
DEFAULT_CONFIG_FILE = "config.yaml"


@dataclass
class EnvVarMapping:
    """Defines how an environment variable maps to a config key.

    Attributes:
        env_var: Environment variable name
        config_key: Key in the config dict
        value_type: Type to convert the value to (str, int)
    """

    env_var: str
    config_key: str
    value_type: type = str


ENV_VAR_MAPPINGS: list[EnvVarMapping] = [
    EnvVarMapping("SKILL_CATALOG_BUNDLED_PATH", "bundled_skills_path"),
    EnvVarMapping("SKILL_CATALOG_USER_PATH", "user_skills_path"),
    EnvVarMapping("DATABASE_URL", "database_url"),
    EnvVarMapping("SKILL_CATALOG_DEFINITION_FILENAME", "definition_filename"),
    EnvVarMapping(
        "SKILL_CATALOG_MAX_DEFINITION_BYTES", "max_definition_bytes", int
    ),
]


def load_yaml_file(
    file_path: str | pathlib.Path,
) -> dict[str, Any]:  # noqa: ANN401
    """Load a YAML file, returning an empty dict if not found or not a mapping."""
    try:
        with open(file_path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError:
        logger.info(f"{file_path} not found.")
        return {}
    if content is None:
        return {}
    if not isinstance(content, dict):
        logger.warning(f"{file_path} is not a valid dictionary. Ignoring.")
        return {}
    return content


def apply_env_var_overrides(
    config_data: dict[str, Any],  # noqa: ANN401
    mappings: list[EnvVarMapping] | None = None,
) -> None:
    """Apply environment variable overrides to configuration in place."""
    if mappings is None:
        mappings = ENV_VAR_MAPPINGS

    for mapping in mappings:
        env_value = os.getenv(mapping.env_var)
        if env_value is None:
            continue
        try:
            config_data[mapping.config_key] = mapping.value_type(env_value)
        except ValueError:
            logger.warning(
                f"Invalid value for {mapping.env_var}: {env_value!r}. Ignoring."
            )


def default_skill_paths(platform_config: PlatformConfig) -> dict[str, pathlib.Path]:
    """Skill roots for a platform layout.

    Bundled skills ship in ``<resources>/skills``; without a resources
    directory they fall back to ``<userData>/bundled-skills``.
    """
    bundled = resolve_resources_path(platform_config, "skills")
    if bundled is None:
        bundled = resolve_user_data_path(platform_config, "bundled-skills")
    return {
        "bundled_skills_path": bundled,
        "user_skills_path": resolve_user_data_path(platform_config, "skills"),
    }


def load_config(
    config_file: str | pathlib.Path | None = DEFAULT_CONFIG_FILE,
    *,
    env_file: str | pathlib.Path | None = None,
    platform_config: PlatformConfig | None = None,
) -> CatalogConfig:
    """Load the catalog configuration.

    Raises:
        pydantic.ValidationError: If the merged configuration is invalid.
    """
    load_dotenv(dotenv_path=env_file, override=False)

    if platform_config is None:
        platform_config = create_default_platform_config(DEFAULT_APP_NAME)

    config_data: dict[str, Any] = dict(default_skill_paths(platform_config))
    if config_file is not None:
        config_data.update(load_yaml_file(config_file))
    apply_env_var_overrides(config_data)

    config = CatalogConfig.model_validate(config_data)
    logger.info(
        "Loaded skill catalog config: bundled=%s user=%s",
        config.bundled_skills_path,
        config.user_skills_path,
    )
    return config
