from datetime import datetime

from sqlalchemy import func, select

from sharein.models.file import File, FileGrant
from sharein.tasks.cleanup import sweep_expired_files


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def test_sweep_deletes_only_past_due_files(app, upload, signup, storage, png_bytes, db):
    alice = await signup("alice@example.com")
    bob = await signup("bob@example.com")
    expired = (await upload(
        alice["headers"], filename="old.png", content=png_bytes, content_type="image/png",
        access=bob["id"], scheduledDeleteDate="2026-01-01T00:00:00Z",
    )).json()["file"]
    future = (await upload(alice["headers"], filename="later.pdf", scheduledDeleteDate="2099-01-01T00:00:00Z")).json()["file"]
    forever = (await upload(alice["headers"], filename="keep.pdf")).json()["file"]
    assert expired["previewImage"] is not None
    expired_keys = [k for op, k in storage.calls[:2]]

    result = await sweep_expired_files(app.state.session_factory, storage, now=datetime(2026, 6, 1))

    assert (result.found, result.deleted, result.failed) == (1, 1, 0)
    assert storage.deleted_keys() == expired_keys
    remaining = set((await db.execute(select(File.id))).scalars().all())
    assert remaining == {future["id"], forever["id"]}
    assert await _count(db, FileGrant) == 0


async def test_sweep_boundary_is_inclusive(app, upload, signup, storage):
    alice = await signup("alice@example.com")
    await upload(alice["headers"], scheduledDeleteDate="2026-06-01T12:00:00")

    result = await sweep_expired_files(app.state.session_factory, storage, now=datetime(2026, 6, 1, 11, 59, 59))
    assert result.found == 0

    result = await sweep_expired_files(app.state.session_factory, storage, now=datetime(2026, 6, 1, 12, 0, 0))
    assert result.deleted == 1


async def test_sweep_continues_after_a_failure(app, upload, signup, storage, db):
    alice = await signup("alice@example.com")
    first = (await upload(alice["headers"], filename="a.pdf", scheduledDeleteDate="2026-01-01T00:00:00Z")).json()["file"]
    second = (await upload(alice["headers"], filename="b.pdf", scheduledDeleteDate="2026-01-02T00:00:00Z")).json()["file"]
    first_key = storage.calls[0][1]
    storage.fail_deletes.add(first_key)

    result = await sweep_expired_files(
        app.state.session_factory, storage, now=datetime(2026, 6, 1), retry_attempts=3, retry_backoff=0.0
    )

    assert (result.found, result.deleted, result.failed) == (2, 1, 1)
    assert storage.deleted_keys().count(first_key) == 3
    remaining = (await db.execute(select(File.id))).scalars().all()
    assert remaining == [first["id"]]
    assert second["id"] not in remaining

    # The next run picks the record up again once storage recovers.
    storage.fail_deletes.clear()
    await db.rollback()
    result = await sweep_expired_files(app.state.session_factory, storage, now=datetime(2026, 6, 1))
    assert result.deleted == 1
    assert await _count(db, File) == 0
