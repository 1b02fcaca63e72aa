# app/blobs/store.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.blobs.models import Blob
from app.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

TICKETS = "tickets"
COMMENTS = "comments"
ATTACHMENTS = "attachments"
FILES = "files"


class BlobStore:
    """Key -> bytes store scoped to one namespace.

    Whole-value get/set/delete and key listing, nothing else. Every call
    commits on its own, so no sequence of calls is atomic and there is no
    conditional write.
    """

    def __init__(self, db: Session, namespace: str):
        self.db = db
        self.namespace = namespace

    def _row(self, key: str) -> Blob | None:
        return self.db.get(Blob, (self.namespace, key))

    def get(self, key: str) -> bytes | None:
        try:
            row = self._row(key)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._unavailable("get", key, exc) from exc
        return None if row is None else row.value

    def get_with_metadata(self, key: str) -> tuple[bytes, dict] | None:
        try:
            row = self._row(key)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._unavailable("get", key, exc) from exc
        if row is None:
            return None
        return row.value, dict(row.meta or {})

    def set(self, key: str, value: bytes | str, metadata: dict | None = None) -> None:
        if isinstance(value, str):
            value = value.encode("utf-8")
        try:
            row = self._row(key)
            if row is None:
                self.db.add(Blob(namespace=self.namespace, key=key, value=value, meta=metadata))
            else:
                row.value = value
                row.meta = metadata
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._unavailable("set", key, exc) from exc

    def delete(self, key: str) -> None:
        # deleting a missing key is a no-op
        try:
            row = self._row(key)
            if row is not None:
                self.db.delete(row)
                self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._unavailable("delete", key, exc) from exc

    def list(self, prefix: str = "") -> list[str]:
        try:
            query = self.db.query(Blob.key).filter(Blob.namespace == self.namespace)
            if prefix:
                query = query.filter(Blob.key.startswith(prefix, autoescape=True))
            return [key for (key,) in query.order_by(Blob.key).all()]
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._unavailable("list", prefix or "*", exc) from exc

    def _unavailable(self, op: str, key: str, exc: Exception) -> StoreUnavailableError:
        logger.error(
            "Blob store %s failed: namespace=%s key=%s error=%s",
            op,
            self.namespace,
            key,
            exc,
        )
        return StoreUnavailableError("Storage unavailable")
