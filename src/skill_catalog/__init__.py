"""Skill catalog: official and custom skills reconciled with a persistent store.

* :class:`SkillsManager` -- the public façade; see :mod:`skill_catalog.skills`.
* :func:`load_config` -- layered YAML + environment configuration.
* :func:`init_db` -- create the catalog schema on a fresh database.
"""

from skill_catalog.config_loader import load_config
from skill_catalog.config_models import CatalogConfig
from skill_catalog.errors import (
    MalformedDefinitionError,
    PersistenceFailure,
    SkillCatalogError,
    SkillNotFoundError,
)
from skill_catalog.skills import SkillRecord, SkillsManager, SkillSource, SyncResult
from skill_catalog.storage import create_engine_with_sqlite_optimizations, init_db

__all__ = [
    "CatalogConfig",
    "MalformedDefinitionError",
    "PersistenceFailure",
    "SkillCatalogError",
    "SkillNotFoundError",
    "SkillRecord",
    "SkillSource",
    "SkillsManager",
    "SyncResult",
    "create_engine_with_sqlite_optimizations",
    "init_db",
    "load_config",
]
