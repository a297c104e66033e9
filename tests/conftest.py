import logging
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from skill_catalog.skills.manager import SkillsManager
from skill_catalog.storage import create_engine_with_sqlite_optimizations, init_db

# Configure logging for tests (optional, but can be helpful)
logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """
    An engine on a temporary on-disk SQLite database with the catalog schema.

    An on-disk file is used rather than ``:memory:`` so that every connection
    sees the same database.
    """
    db_path = tmp_path / "test.db"
    engine = create_engine_with_sqlite_optimizations(f"sqlite+aiosqlite:///{db_path}")
    await init_db(engine)
    logger.info(f"Created SQLite test engine: {engine.url}")

    yield engine

    await engine.dispose()


@pytest.fixture
def bundled_skills_path(tmp_path: Path) -> Path:
    path = tmp_path / "bundled-skills"
    path.mkdir()
    return path


@pytest.fixture
def user_skills_path(tmp_path: Path) -> Path:
    path = tmp_path / "user-skills"
    path.mkdir()
    return path


@pytest.fixture
def skills_manager(
    bundled_skills_path: Path, user_skills_path: Path, db_engine: AsyncEngine
) -> SkillsManager:
    return SkillsManager(
        bundled_skills_path, user_skills_path, db_engine, db_base_delay=0.0
    )
