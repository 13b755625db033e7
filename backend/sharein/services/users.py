import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from sharein.core.errors import Conflict, InvalidCredentials, NotFound
from sharein.core.security import get_password_hash, verify_password
from sharein.models.file import File, FileGrant, FileInvite
from sharein.models.user import User

logger = logging.getLogger("sharein")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    res = await db.execute(select(User).where(User.email == normalize_email(email)))
    return res.scalars().first()


async def get_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


async def create_user(db: AsyncSession, email: str, password: str, name: str | None = None, rounds: int = 12) -> User:
    email = normalize_email(email)
    if await get_user_by_email(db, email):
        raise Conflict()

    hashed_password = await run_in_threadpool(get_password_hash, password, rounds)
    user = User(email=email, name=(name or "").strip() or None, hashed_password=hashed_password)
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise Conflict()

    await _promote_invites(db, user)
    await db.commit()
    await db.refresh(user)
    logger.info("Created user %s", user.id)
    return user


async def _promote_invites(db: AsyncSession, user: User) -> None:
    """Turn pending email invites for ``user.email`` into grants."""
    res = await db.execute(
        select(FileInvite.file_id, File.creator)
        .join(File, File.id == FileInvite.file_id)
        .where(FileInvite.email == user.email)
    )
    rows = res.all()
    if not rows:
        return
    for file_id, creator in rows:
        if creator != user.id:
            db.add(FileGrant(file_id=file_id, user_id=user.id))
    await db.execute(delete(FileInvite).where(FileInvite.email == user.email))
    logger.info("Promoted %s pending invite(s) for user %s", len(rows), user.id)


async def verify_credentials(db: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if not user:
        raise InvalidCredentials()
    if not await run_in_threadpool(verify_password, password, user.hashed_password):
        raise InvalidCredentials()
    return user
