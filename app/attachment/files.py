# app/attachment/files.py
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.blobs.store import FILES, BlobStore
from app.core.errors import NotFoundError

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_FILENAME = "download"


@dataclass(frozen=True)
class StoredFile:
    data: bytes
    content_type: str
    filename: str


def build_file_key(ticket_id: int, attachment_id: str, filename: str) -> str:
    return f"{ticket_id}/{attachment_id}-{filename}"


def filename_from_key(file_key: str) -> str:
    """
    Recover the original name from "<ticketId>/<millis>-<suffix>-<name>".
    The attachment id carries one dash of its own.
    """
    _, _, tail = file_key.partition("/")
    parts = tail.split("-", 2)
    if len(parts) == 3 and parts[2]:
        return parts[2]
    return DEFAULT_FILENAME


class FileStore:
    """Raw attachment payloads, keyed by fileKey, in their own namespace."""

    def __init__(self, db: Session):
        self.blobs = BlobStore(db, FILES)

    def put(self, file_key: str, data: bytes, content_type: str, original_name: str) -> None:
        self.blobs.set(
            file_key,
            data,
            metadata={"contentType": content_type, "originalName": original_name},
        )

    def fetch(self, file_key: str) -> StoredFile:
        found = self.blobs.get_with_metadata(file_key)
        if found is None:
            raise NotFoundError("File not found")
        data, metadata = found
        return StoredFile(
            data=data,
            content_type=metadata.get("contentType") or DEFAULT_CONTENT_TYPE,
            filename=metadata.get("originalName") or filename_from_key(file_key),
        )

    def remove(self, file_key: str) -> None:
        self.blobs.delete(file_key)

    def keys(self, prefix: str = "") -> list[str]:
        return self.blobs.list(prefix)
