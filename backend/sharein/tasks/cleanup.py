"""Expiry sweep: delete every file whose scheduled deletion date has passed.

Runs as a one-shot job (``sharein-sweep``, meant for cron) and, when
``CLEANUP_INTERVAL_SECONDS`` is positive, as a loop inside the API process.
Each due record is handled on its own: a failure is logged and the sweep
moves on, so the record is simply picked up again by the next run.

The sweep takes no lock on the rows it reads. An owner who clears the
schedule while a sweep is running can still lose the file; last writer wins.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.concurrency import run_in_threadpool

from sharein.core.config import Settings
from sharein.core.database import create_engine, create_session_factory, utcnow
from sharein.core.storage import ObjectStorage
from sharein.models.file import File, FileGrant, FileInvite
from sharein.monitoring.setup import report_sweep

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    found: int = 0
    deleted: int = 0
    failed: int = 0


async def _retry_delete(storage: ObjectStorage, key: str, attempts: int, backoff: float) -> None:
    """Retry wrapper for object deletion; re-raises the last failure."""
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            await run_in_threadpool(storage.delete, key)
            return
        except Exception as e:
            logger.warning(f"Object delete failed (attempt {attempt}/{attempts}) object={key} err={e}")
            if attempt == attempts:
                raise
            await asyncio.sleep(backoff * attempt)


async def sweep_expired_files(
    session_factory: async_sessionmaker[AsyncSession],
    storage: ObjectStorage,
    now: datetime | None = None,
    retry_attempts: int = 1,
    retry_backoff: float = 0.0,
) -> SweepResult:
    now = now or utcnow()
    started = utcnow()
    result = SweepResult()

    async with session_factory() as db:
        res = await db.execute(
            select(File.id, File.object_name, File.preview_object_name).where(
                File.scheduled_delete_date.is_not(None), File.scheduled_delete_date <= now
            )
        )
        due = res.all()
        result.found = len(due)
        logger.info("Found %s expired files to delete", result.found)

        for file_id, object_name, preview_object_name in due:
            try:
                await _retry_delete(storage, object_name, retry_attempts, retry_backoff)
                if preview_object_name:
                    await _retry_delete(storage, preview_object_name, retry_attempts, retry_backoff)
                await db.execute(delete(FileGrant).where(FileGrant.file_id == file_id))
                await db.execute(delete(FileInvite).where(FileInvite.file_id == file_id))
                await db.execute(delete(File).where(File.id == file_id))
                await db.commit()
                result.deleted += 1
                logger.info("Deleted expired file %s", file_id)
            except Exception:
                result.failed += 1
                logger.exception("Error deleting expired file %s", file_id)
                await db.rollback()

    duration = (utcnow() - started).total_seconds()
    report_sweep(result.deleted, result.failed, duration)
    logger.info("sweep_summary found=%s deleted=%s failed=%s duration=%.3fs",
                result.found, result.deleted, result.failed, duration)
    return result


async def run_periodic_sweep(settings: Settings, session_factory, storage: ObjectStorage):
    interval = settings.CLEANUP_INTERVAL_SECONDS
    logger.info("Periodic sweep started: interval=%s", interval)
    while True:
        try:
            await sweep_expired_files(
                session_factory,
                storage,
                retry_attempts=settings.CLEANUP_RETRY_ATTEMPTS,
                retry_backoff=settings.CLEANUP_RETRY_BACKOFF_SECS,
            )
            await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("Periodic sweep cancelled by shutdown")
            raise
        except Exception as e:
            logger.exception("Sweep loop error: %s", e)
            await asyncio.sleep(min(60, interval))


async def run_once(settings: Settings) -> SweepResult:
    engine = create_engine(settings)
    try:
        return await sweep_expired_files(
            create_session_factory(engine),
            ObjectStorage(settings),
            retry_attempts=settings.CLEANUP_RETRY_ATTEMPTS,
            retry_backoff=settings.CLEANUP_RETRY_BACKOFF_SECS,
        )
    finally:
        await engine.dispose()


def main():
    settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_once(settings))
    logger.info("File cleanup completed")


if __name__ == "__main__":
    main()
