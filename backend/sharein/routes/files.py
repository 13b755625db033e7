from fastapi import APIRouter, Depends, File as FormFile, Form, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from sharein.core.database import get_db
from sharein.core.errors import PayloadTooLarge
from sharein.dependencies.auth import get_current_user
from sharein.models.user import User
from sharein.schemas.file import AccessUpdate, FileListResponse, FileResponse, MessageResponse, ShareEmailRequest
from sharein.services.file_service import FileService

router = APIRouter(prefix="/api/files", tags=["Files"])


def get_file_service(request: Request, db: AsyncSession = Depends(get_db)) -> FileService:
    state = request.app.state
    return FileService(db, state.storage, state.settings, mailer=state.mailer)


@router.post("/upload", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = FormFile(...),
    name: str | None = Form(None),
    access: str | None = Form(None),
    scheduled_delete_date: str | None = Form(None, alias="scheduledDeleteDate"),
    service: FileService = Depends(get_file_service),
    current_user: User = Depends(get_current_user),
):
    limit = service.settings.MAX_UPLOAD_SIZE
    if file.size is not None and file.size > limit:
        raise PayloadTooLarge()
    # One byte over the limit is enough for the service to reject it.
    data = await file.read(limit + 1)
    created = await service.upload(
        current_user.id,
        data,
        filename=file.filename or "file.bin",
        content_type=file.content_type,
        name=name,
        access=access,
        scheduled_delete_date=scheduled_delete_date,
    )
    return {"file": created}


@router.get("", response_model=FileListResponse)
async def list_files(
    type: str | None = Query(None, description="docs, sheets, media or other"),
    name: str | None = Query(None, description="Case-insensitive name search"),
    access: str | None = Query(None, description="Only files granted to this user id or invited email"),
    service: FileService = Depends(get_file_service),
    current_user: User = Depends(get_current_user),
):
    files = await service.list_files(current_user.id, file_type=type, name=name, grantee=access)
    return {"files": files}


@router.get("/{file_id}", response_model=FileResponse)
async def get_file(
    file_id: str,
    service: FileService = Depends(get_file_service),
    current_user: User = Depends(get_current_user),
):
    return {"file": await service.get_file(current_user.id, file_id)}


@router.put("/{file_id}/access", response_model=FileResponse)
async def update_access(
    file_id: str,
    payload: AccessUpdate,
    service: FileService = Depends(get_file_service),
    current_user: User = Depends(get_current_user),
):
    return {"file": await service.replace_access(current_user.id, file_id, payload.access)}


@router.delete("/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: str,
    service: FileService = Depends(get_file_service),
    current_user: User = Depends(get_current_user),
):
    await service.delete_file(current_user.id, file_id)
    return MessageResponse(message="File deleted successfully")


@router.post("/{file_id}/share-email", response_model=MessageResponse)
async def share_by_email(
    file_id: str,
    payload: ShareEmailRequest,
    service: FileService = Depends(get_file_service),
    current_user: User = Depends(get_current_user),
):
    await service.share_by_email(current_user.id, file_id, payload.email_address)
    return MessageResponse(message="Email sent successfully")
