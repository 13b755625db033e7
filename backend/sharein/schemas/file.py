from .base import CamelModel, UTCDateTime


class FileInfo(CamelModel):
    id: str
    name: str
    file_url: str
    access: list[str]
    pending_invites: list[str]
    creator: str
    created_at: UTCDateTime
    scheduled_delete_date: UTCDateTime | None = None
    type: str
    preview_image: str | None = None
    content_type: str | None = None
    size: int | None = None


class FileResponse(CamelModel):
    file: FileInfo


class FileListResponse(CamelModel):
    files: list[FileInfo]


class AccessUpdate(CamelModel):
    access: list[str] | str | None = None


class ShareEmailRequest(CamelModel):
    email_address: str | None = None


class MessageResponse(CamelModel):
    message: str
