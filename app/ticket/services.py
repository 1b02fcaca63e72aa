# app/ticket/services.py
import logging

from sqlalchemy.orm import Session

from app.attachment.services import AttachmentRepository
from app.blobs.codec import created_at_key, parse_timestamp, utc_now_iso
from app.blobs.collection import CollectionStore
from app.blobs.store import TICKETS, BlobStore
from app.comment.services import CommentRepository
from app.core.config import Settings
from app.core.errors import NotFoundError, ValidationError
from app.ticket.schemas import CATEGORIES, PRIORITIES, STATUSES

logger = logging.getLogger(__name__)

ALL_TICKETS_KEY = "all-tickets"

REQUIRED_FIELDS = ("title", "category", "description")


def check_choice(field: str, value, allowed) -> None:
    if value not in allowed:
        raise ValidationError(f"Invalid {field} '{value}'. Allowed: {', '.join(allowed)}")


class TicketRepository:
    """All tickets live in a single collection under ALL_TICKETS_KEY."""

    def __init__(self, db: Session):
        self.store = CollectionStore(BlobStore(db, TICKETS))

    def list(self) -> list[dict]:
        tickets = self.store.read_or_empty(ALL_TICKETS_KEY)
        return sorted(tickets, key=created_at_key, reverse=True)

    def get(self, ticket_id: int) -> dict:
        for ticket in self.store.read(ALL_TICKETS_KEY):
            if ticket.get("id") == ticket_id:
                return ticket
        raise NotFoundError("Ticket not found")

    def create(self, fields: dict) -> dict:
        missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        priority = fields.get("priority") or "Medium"
        status = fields.get("status") or "Open"
        created_at = fields.get("created_at") or utc_now_iso()
        check_choice("category", fields["category"], CATEGORIES)
        check_choice("priority", priority, PRIORITIES)
        check_choice("status", status, STATUSES)
        if parse_timestamp(created_at) is None:
            raise ValidationError(f"Invalid created_at '{created_at}'")

        def insert(tickets: list[dict]) -> dict:
            ids = [t["id"] for t in tickets if isinstance(t.get("id"), int)]
            ticket = {
                "id": max(ids, default=0) + 1,
                "title": fields["title"],
                "category": fields["category"],
                "priority": priority,
                "description": fields["description"],
                "status": status,
                "created_at": created_at,
            }
            # newest first in storage too
            tickets.insert(0, ticket)
            return ticket

        ticket = self.store.mutate(ALL_TICKETS_KEY, insert)
        logger.info("Created ticket id=%s category=%s", ticket["id"], ticket["category"])
        return ticket

    def update_status(self, ticket_id: int, status: str) -> dict:
        return self.update(ticket_id, status=status)

    def update_priority(self, ticket_id: int, priority: str) -> dict:
        return self.update(ticket_id, priority=priority)

    def update(self, ticket_id: int, **changes) -> dict:
        if not changes:
            raise ValidationError("Nothing to update")
        if "status" in changes:
            check_choice("status", changes["status"], STATUSES)
        if "priority" in changes:
            check_choice("priority", changes["priority"], PRIORITIES)
        unknown = set(changes) - {"status", "priority"}
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        def apply(tickets: list[dict]) -> dict:
            for ticket in tickets:
                if ticket.get("id") == ticket_id:
                    ticket.update(changes)
                    return ticket
            raise NotFoundError("Ticket not found")

        return self.store.mutate(ALL_TICKETS_KEY, apply)

    def delete(self, ticket_id: int) -> dict:
        """Remove the ticket record only; comments and attachments stay."""

        def remove(tickets: list[dict]) -> dict:
            for index, ticket in enumerate(tickets):
                if ticket.get("id") == ticket_id:
                    return tickets.pop(index)
            raise NotFoundError("Ticket not found")

        ticket = self.store.mutate(ALL_TICKETS_KEY, remove)
        logger.info("Deleted ticket id=%s", ticket_id)
        return ticket


def delete_ticket(db: Session, ticket_id: int, settings: Settings) -> dict:
    ticket = TicketRepository(db).delete(ticket_id)
    if settings.TICKET_DELETE_CASCADE:
        CommentRepository(db).purge(ticket_id)
        AttachmentRepository(db, settings).purge(ticket_id)
        logger.info("Cascaded delete of comments and attachments for ticket id=%s", ticket_id)
    return ticket
