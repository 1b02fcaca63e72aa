# app/attachment/services.py
import logging
import secrets
import string
import time
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.attachment.files import FileStore, StoredFile, build_file_key
from app.blobs.codec import utc_now_iso
from app.blobs.collection import PARENT_KEY_PREFIX, CollectionStore, parent_id_from_key, parent_key
from app.blobs.store import ATTACHMENTS, BlobStore
from app.core.config import Settings
from app.core.errors import NotFoundError, PayloadTooLargeError, UnsupportedTypeError, ValidationError

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_SUFFIX_LENGTH = 9


@dataclass
class IncomingFile:
    filename: str
    content_type: str
    data: bytes = b""
    size: int | None = None

    def __post_init__(self):
        if self.size is None:
            self.size = len(self.data)


def new_attachment_id() -> str:
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"{millis}-{suffix}"


def clean_filename(filename: str) -> str:
    return PurePosixPath(filename.replace("\\", "/")).name


class AttachmentRepository:
    """
    Attachment records live in one collection per ticket (ticket-<id>);
    the payloads they point at live in the FileStore.
    """

    def __init__(self, db: Session, settings: Settings):
        self.store = CollectionStore(BlobStore(db, ATTACHMENTS))
        self.files = FileStore(db)
        self.settings = settings

    def list(self, ticket_id: int) -> list[dict]:
        return self.store.read_or_empty(parent_key(ticket_id))

    def validate(self, upload: IncomingFile) -> None:
        limit = self.settings.MAX_UPLOAD_BYTES
        if upload.size > limit:
            raise PayloadTooLargeError(f"File size exceeds {limit // (1024 * 1024)}MB limit")
        if upload.content_type not in self.settings.ALLOWED_CONTENT_TYPES:
            raise UnsupportedTypeError(f"File type not allowed: {upload.content_type or 'unknown'}")

    def upload(self, ticket_id: int, upload: IncomingFile) -> dict:
        filename = clean_filename(upload.filename or "")
        if not ticket_id or not filename:
            raise ValidationError("Missing file or ticketId")
        self.validate(upload)

        attachment_id = new_attachment_id()
        file_key = build_file_key(ticket_id, attachment_id, filename)
        self.files.put(file_key, upload.data, upload.content_type, filename)

        record = {
            "id": attachment_id,
            "ticketId": ticket_id,
            "filename": filename,
            "size": upload.size,
            "contentType": upload.content_type,
            "fileKey": file_key,
            "url": f"{self.settings.DOWNLOAD_PATH}?fileKey={quote(file_key, safe='')}",
            "created_at": utc_now_iso(),
        }
        # payload is already stored; a failure here leaves it orphaned
        self.store.mutate(parent_key(ticket_id), lambda records: records.append(record))
        logger.info("Stored attachment id=%s ticket=%s size=%s", attachment_id, ticket_id, upload.size)
        return record

    def locate(self, attachment_id: str) -> tuple[int | str, dict]:
        """
        Find the ticket owning an attachment by scanning every per-ticket
        collection. Linear in the total number of attachments.
        """
        key, record = self._find(attachment_id)
        return parent_id_from_key(key), record

    def _find(self, attachment_id: str) -> tuple[str, dict]:
        for key in self.store.keys(PARENT_KEY_PREFIX):
            for record in self.store.read(key):
                if record.get("id") == attachment_id:
                    return key, record
        raise NotFoundError("Attachment not found")

    def delete(self, attachment_id: str) -> dict:
        # rewrite the key that was found, as stored (e.g. "ticket-007")
        key, record = self._find(attachment_id)
        if record.get("fileKey"):
            self.files.remove(record["fileKey"])

        def remove(records: list[dict]) -> None:
            records[:] = [r for r in records if r.get("id") != attachment_id]

        # payload is gone already; a failure here leaves a dangling record
        self.store.mutate(key, remove)
        logger.info("Deleted attachment id=%s from %s", attachment_id, key)
        return record

    def download(self, file_key: str) -> StoredFile:
        return self.files.fetch(file_key)

    def purge(self, ticket_id: int) -> None:
        key = parent_key(ticket_id)
        for record in self.store.read(key):
            if record.get("fileKey"):
                self.files.remove(record["fileKey"])
        self.store.drop(key)
