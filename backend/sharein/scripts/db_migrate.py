import logging
import os
import subprocess
import sys

from sqlalchemy import create_engine, inspect

from sharein.core.config import Settings

logger = logging.getLogger("sharein")

ALEMBIC_INI = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), "alembic.ini")


def sync_url(database_url: str) -> str:
    return database_url.replace("+aiosqlite", "")


def migrate(settings: Settings) -> None:
    engine = create_engine(sync_url(settings.DATABASE_URL))
    try:
        insp = inspect(engine)
        has_alembic = insp.has_table("alembic_version")
        existing_core_tables = any(insp.has_table(t) for t in ("users", "files"))
    finally:
        engine.dispose()

    alembic = ["alembic", "-c", ALEMBIC_INI]
    if existing_core_tables and not has_alembic:
        logger.info("[db-migrate] Existing tables detected without alembic_version, stamping head")
        subprocess.run([*alembic, "stamp", "head"], check=True)
    else:
        logger.info("[db-migrate] has_alembic=%s existing_core_tables=%s", has_alembic, existing_core_tables)

    subprocess.run([*alembic, "upgrade", "head"], check=True)


def main():
    settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    try:
        migrate(settings)
    except subprocess.CalledProcessError as e:
        logger.error("[db-migrate] Alembic command failed: %s", e)
        sys.exit(e.returncode)


if __name__ == "__main__":
    main()
