# app/comment/services.py
import logging

from sqlalchemy.orm import Session

from app.blobs.codec import created_at_key, parse_timestamp, utc_now_iso
from app.blobs.collection import CollectionStore, parent_key
from app.blobs.store import COMMENTS, BlobStore
from app.core.errors import ValidationError

logger = logging.getLogger(__name__)


class CommentRepository:
    """One comment collection per ticket, keyed ticket-<id>."""

    def __init__(self, db: Session):
        self.store = CollectionStore(BlobStore(db, COMMENTS))

    def list(self, ticket_id: int) -> list[dict]:
        comments = self.store.read_or_empty(parent_key(ticket_id))
        return sorted(comments, key=created_at_key)

    def create(self, ticket_id: int, content: str, created_at: str | None = None) -> dict:
        if not ticket_id or not content:
            raise ValidationError("Missing required fields: ticketId and content")
        created_at = created_at or utc_now_iso()
        if parse_timestamp(created_at) is None:
            raise ValidationError(f"Invalid created_at '{created_at}'")

        def append(comments: list[dict]) -> dict:
            # ids are local to the collection: highest existing id + 1
            ids = [c["id"] for c in comments if isinstance(c.get("id"), int)]
            comment = {
                "id": max(ids, default=0) + 1,
                "content": content,
                "created_at": created_at,
            }
            comments.append(comment)
            return comment

        comment = self.store.mutate(parent_key(ticket_id), append)
        logger.info("Added comment id=%s to ticket id=%s", comment["id"], ticket_id)
        return comment

    def purge(self, ticket_id: int) -> None:
        self.store.drop(parent_key(ticket_id))
