"""File lifecycle: upload, listing, access control, sharing and deletion.

A file lives in two stores that commit independently: the payload (and
optional preview) in the object store, and the metadata row in the database.
Upload writes objects first and the row last; deletion removes objects first
and the row last. A crash between the steps leaves an orphaned object on
upload, or a row pointing at removed objects on delete. Neither is repaired
automatically.
"""
import json
import logging
import re
import uuid
from datetime import datetime, timezone

from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from sharein.core.config import Settings
from sharein.core.errors import (
    BadRequest,
    DeleteFailed,
    Forbidden,
    MailDeliveryFailed,
    NotFound,
    PayloadTooLarge,
    UploadFailed,
)
from sharein.core.storage import ObjectStorage, StorageError
from sharein.models.file import File, FileGrant, FileInvite
from sharein.services import users
from sharein.services.classification import classify, file_extension
from sharein.services.thumbnails import make_thumbnail
from sharein.utils.email import Mailer, MailError, render_share_email
from sharein.utils.urls import build_share_url

logger = logging.getLogger("sharein")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_access(value) -> list[str]:
    """Accept a list, a JSON-encoded list, or a comma separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            decoded = None
        if isinstance(decoded, list):
            items = decoded
        else:
            items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise BadRequest("Access list must be a list or a string")

    seen = []
    for item in items:
        token = str(item).strip()
        if token and token not in seen:
            seen.append(token)
    return seen


def parse_schedule(value: str | None) -> datetime | None:
    if value is None or not str(value).strip():
        return None
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise BadRequest("Invalid scheduledDeleteDate")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class FileService:
    def __init__(self, db: AsyncSession, storage: ObjectStorage, settings: Settings, mailer: Mailer | None = None):
        self.db = db
        self.storage = storage
        self.settings = settings
        self.mailer = mailer

    async def _load(self, file_id: str) -> File:
        file = await self.db.get(File, file_id)
        if not file:
            raise NotFound("File not found")
        return file

    async def get_file(self, user_id: str, file_id: str) -> File:
        file = await self._load(file_id)
        if not file.can_read(user_id):
            raise Forbidden("Access denied")
        return file

    async def _load_owned(self, user_id: str, file_id: str, message: str) -> File:
        file = await self._load(file_id)
        if not file.is_owner(user_id):
            raise Forbidden(message)
        return file

    async def _resolve_access(self, tokens: list[str], owner_id: str) -> tuple[list[str], list[str]]:
        """Split an access list into grantee user ids and pending invite emails.

        Email entries of registered users resolve to their id; unknown
        addresses become invites. The owner is never listed.
        """
        grantees, invitees = [], []
        for token in tokens:
            if not EMAIL_RE.match(token):
                user_id = token
            else:
                recipient = await users.get_user_by_email(self.db, token)
                if recipient is None:
                    email = users.normalize_email(token)
                    if email not in invitees:
                        invitees.append(email)
                    continue
                user_id = recipient.id
            if user_id != owner_id and user_id not in grantees:
                grantees.append(user_id)
        return grantees, invitees

    async def upload(
        self,
        user_id: str,
        data: bytes,
        filename: str,
        content_type: str | None,
        name: str | None = None,
        access=None,
        scheduled_delete_date: str | None = None,
    ) -> File:
        if not data:
            raise BadRequest("No file uploaded")
        if len(data) > self.settings.MAX_UPLOAD_SIZE:
            raise PayloadTooLarge()

        content_type = content_type or "application/octet-stream"
        delete_at = parse_schedule(scheduled_delete_date)
        grantees, invitees = await self._resolve_access(normalize_access(access), user_id)
        file_type = classify(content_type, filename)

        key = f"{user_id}/{uuid.uuid4()}{file_extension(filename)}"
        try:
            file_url = await run_in_threadpool(self.storage.upload, key, data, content_type)
        except StorageError as e:
            logger.error("Upload of %s failed: %s", key, e)
            raise UploadFailed(retryable=e.retryable)

        preview_url = preview_key = None
        if content_type.startswith("image/"):
            preview_key = f"{user_id}/thumbnails/thumbnail-{uuid.uuid4()}.png"
            try:
                thumb = await run_in_threadpool(make_thumbnail, data, self.settings.THUMBNAIL_SIZE)
                preview_url = await run_in_threadpool(self.storage.upload, preview_key, thumb, "image/png")
            except Exception as e:
                logger.warning("Error generating thumbnail for %s: %s", key, e)
                preview_key = None

        file = File(
            name=(name or "").strip() or filename,
            file_url=file_url,
            bucket=self.storage.bucket,
            object_name=key,
            preview_image=preview_url,
            preview_object_name=preview_key,
            content_type=content_type,
            size=len(data),
            type=file_type,
            creator=user_id,
            scheduled_delete_date=delete_at,
            grants=[FileGrant(user_id=g) for g in grantees],
            invites=[FileInvite(email=e) for e in invitees],
        )
        self.db.add(file)
        try:
            await self.db.commit()
        except Exception:
            logger.exception("Metadata write failed, objects left behind: %s %s", key, preview_key)
            raise
        await self.db.refresh(file)
        logger.info("Uploaded file %s (%s, %s bytes) for %s", file.id, file_type, len(data), user_id)
        return file

    async def list_files(
        self,
        user_id: str,
        file_type: str | None = None,
        name: str | None = None,
        grantee: str | None = None,
    ) -> list[File]:
        granted = exists().where(FileGrant.file_id == File.id, FileGrant.user_id == user_id)
        conditions = [or_(File.creator == user_id, granted)]

        if file_type:
            conditions.append(File.type == file_type)
        if name and name.strip():
            needle = re.sub(r"([\\%_])", r"\\\1", name.strip())
            conditions.append(File.name.ilike(f"%{needle}%", escape="\\"))
        if grantee:
            conditions.append(
                or_(
                    exists().where(FileGrant.file_id == File.id, FileGrant.user_id == grantee),
                    exists().where(FileInvite.file_id == File.id, FileInvite.email == grantee.strip().lower()),
                )
            )

        query = select(File).where(*conditions).order_by(File.created_at.desc(), File.id.desc())
        return list((await self.db.execute(query)).scalars().all())

    async def replace_access(self, user_id: str, file_id: str, access) -> File:
        if access is None or (isinstance(access, str) and not access.strip()):
            raise BadRequest("Access list required")
        file = await self._load_owned(user_id, file_id, "Only the file creator can update access")

        grantees, invitees = await self._resolve_access(normalize_access(access), file.creator)
        # Keep rows for retained grantees; the unit of work inserts before it deletes.
        current = {g.user_id: g for g in file.grants}
        file.grants = [current.get(g) or FileGrant(user_id=g) for g in grantees]
        pending = file.pending_invites
        file.invites.extend(FileInvite(email=e) for e in invitees if e not in pending)
        await self.db.commit()
        await self.db.refresh(file)
        logger.info("Access for file %s replaced with %s grantee(s)", file.id, len(grantees))
        return file

    async def share_by_email(self, user_id: str, file_id: str, email_address: str | None) -> None:
        if not email_address or not email_address.strip():
            raise BadRequest("Email address is required")
        email_address = email_address.strip()
        if not EMAIL_RE.match(email_address):
            raise BadRequest("Invalid email format")

        file = await self._load(file_id)
        if not file.can_read(user_id):
            raise Forbidden("You do not have permission to share this file")

        sharer = await users.get_user(self.db, user_id)
        share_url = build_share_url(self.settings.PUBLIC_BASE_URL, file.id)
        subject, html_body, text_body = render_share_email(sharer.name, sharer.email, file.name, file.type, share_url)

        try:
            await run_in_threadpool(self.mailer.send, email_address, subject, html_body, text_body)
        except MailError as e:
            logger.error("Error sending share email for file %s: %s", file.id, e)
            raise MailDeliveryFailed(retryable=e.retryable)

        if file.is_owner(user_id):
            await self._record_recipient(file, email_address)

    async def _record_recipient(self, file: File, email_address: str) -> None:
        grantees, invitees = await self._resolve_access([email_address], file.creator)
        new_grants = [g for g in grantees if g not in file.access]
        new_invites = [e for e in invitees if e not in file.pending_invites]
        if not new_grants and not new_invites:
            return
        file.grants.extend(FileGrant(user_id=g) for g in new_grants)
        file.invites.extend(FileInvite(email=e) for e in new_invites)
        await self.db.commit()

    async def delete_file(self, user_id: str, file_id: str) -> None:
        file = await self._load_owned(user_id, file_id, "Only the file creator can delete this file")

        for key in (file.object_name, file.preview_object_name):
            if not key:
                continue
            try:
                await run_in_threadpool(self.storage.delete, key)
            except StorageError as e:
                logger.error("Delete of %s for file %s failed: %s", key, file.id, e)
                raise DeleteFailed(retryable=e.retryable)

        await self.db.delete(file)
        await self.db.commit()
        logger.info("Deleted file %s", file_id)
