# app/attachment/routes.py
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.attachment.schemas import AttachmentDeleted, AttachmentOut
from app.attachment.services import AttachmentRepository, IncomingFile
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import PayloadTooLargeError

router = APIRouter(tags=["Attachments"])

CHUNK_SIZE = 1024 * 1024  # 1MB


def get_repository(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AttachmentRepository:
    return AttachmentRepository(db, settings)


def read_limited(file: UploadFile, limit: int) -> bytes:
    chunks = []
    size = 0
    while True:
        chunk = file.file.read(CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise PayloadTooLargeError(f"File size exceeds {limit // (1024 * 1024)}MB limit")
        chunks.append(chunk)
    return b"".join(chunks)


def content_disposition(filename: str) -> str:
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.get("/tickets/{ticket_id}/attachments", response_model=list[AttachmentOut])
def list_all(ticket_id: int, repo: AttachmentRepository = Depends(get_repository)):
    return repo.list(ticket_id)


@router.post("/tickets/{ticket_id}/attachments", response_model=AttachmentOut, status_code=201)
def upload(
    ticket_id: int,
    file: UploadFile = File(...),
    repo: AttachmentRepository = Depends(get_repository),
):
    data = read_limited(file, repo.settings.MAX_UPLOAD_BYTES)
    incoming = IncomingFile(
        filename=file.filename or "",
        content_type=file.content_type or "",
        data=data,
    )
    return repo.upload(ticket_id, incoming)


@router.get("/attachments/download")
def download(
    file_key: str = Query(..., alias="fileKey", min_length=1),
    repo: AttachmentRepository = Depends(get_repository),
):
    stored = repo.download(file_key)
    return Response(
        content=stored.data,
        media_type=stored.content_type,
        headers={
            "Content-Disposition": content_disposition(stored.filename),
            "Cache-Control": "public, max-age=31536000",
        },
    )


@router.delete("/attachments/{attachment_id}", response_model=AttachmentDeleted)
def delete(attachment_id: str, repo: AttachmentRepository = Depends(get_repository)):
    repo.delete(attachment_id)
    return {"message": "Attachment deleted successfully", "id": attachment_id}
