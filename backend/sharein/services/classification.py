import os

DOC_EXTENSIONS = {".doc", ".docx", ".txt", ".rtf", ".pdf"}
SHEET_EXTENSIONS = {".xls", ".xlsx", ".csv"}
MEDIA_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".svg", ".mp4", ".avi", ".mov", ".mp3", ".wav"}


def file_extension(filename: str | None) -> str:
    return os.path.splitext(filename or "")[1].lower()


def classify(mime_type: str | None, filename: str | None) -> str:
    """Bucket an upload into docs, sheets, media or other.

    Rules are checked in that order and the first match wins.
    """
    mime = (mime_type or "").lower()
    ext = file_extension(filename)

    if mime == "application/pdf" or "word" in mime or "text/" in mime or ext in DOC_EXTENSIONS:
        return "docs"
    if "spreadsheet" in mime or "excel" in mime or ext in SHEET_EXTENSIONS:
        return "sheets"
    if any(kind in mime for kind in ("image/", "video/", "audio/")) or ext in MEDIA_EXTENSIONS:
        return "media"
    return "other"
