"""Create the insights tables.

This script only creates THIS service's tables; the student tables it reads
belong to the school management system and are never touched.

Usage:
    DATABASE_URL_ADMIN=postgresql://... python -m scripts.setup_database
"""

import asyncio
import os
import sys
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


def _extract_statements(sql: str) -> list[str]:
    """Split SQL on ';' and strip comment-only chunks, returning executable statements."""
    statements = []
    for chunk in sql.split(";"):
        sql_lines = [line for line in chunk.splitlines() if not line.strip().startswith("--")]
        stmt = "\n".join(sql_lines).strip()
        if stmt:
            statements.append(stmt)
    return statements


async def setup() -> None:
    """Apply every migration file in order."""
    from sqlalchemy import text
    from sqlalchemy.ext.asyncio import create_async_engine

    from student_insights.core.config import to_asyncpg_url

    database_url = os.environ.get("DATABASE_URL_ADMIN") or os.environ.get("DATABASE_URL_APP")
    if not database_url:
        logger.error("DATABASE_URL_ADMIN (or DATABASE_URL_APP) not set")
        sys.exit(1)

    engine = create_async_engine(to_asyncpg_url(database_url))

    migrations_dir = Path(__file__).parent.parent / "db" / "migrations"
    # One transaction per file so a failure does not roll back earlier files.
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        logger.info("Running migration", file=migration_file.name)
        async with engine.begin() as conn:
            for statement in _extract_statements(migration_file.read_text()):
                await conn.execute(text(statement))

    await engine.dispose()
    logger.info("Database setup complete")


if __name__ == "__main__":
    asyncio.run(setup())
