# app/ticket/routes.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.ticket.schemas import TicketCreate, TicketOut, TicketUpdate
from app.ticket import services as ticket_service
from app.ticket.services import TicketRepository
from app.core.config import get_settings, Settings
router = APIRouter(prefix="/tickets", tags=["Tickets"])


def get_repository(db: Session = Depends(get_db)) -> TicketRepository:
    return TicketRepository(db)


@router.post("/", response_model=TicketOut, status_code=201)
def create(ticket: TicketCreate, repo: TicketRepository = Depends(get_repository)):
    return repo.create(ticket.model_dump(exclude_none=True))

@router.get("/", response_model=list[TicketOut])
def list_all(
    status: str | None = Query(default=None, description="Filter by status: Open, In Progress or Resolved"),
    repo: TicketRepository = Depends(get_repository),
):
    items = repo.list()
    if status:
        items = [t for t in items if t.get("status") == status]
    return items


@router.get("/{ticket_id}", response_model=TicketOut)
def get(ticket_id: int, repo: TicketRepository = Depends(get_repository)):
    return repo.get(ticket_id)


@router.put("/{ticket_id}", response_model=TicketOut)
def update(ticket_id: int, ticket: TicketUpdate, repo: TicketRepository = Depends(get_repository)):
    return repo.update(ticket_id, **ticket.model_dump(exclude_none=True))


@router.delete("/{ticket_id}", response_model=TicketOut)
def delete(
    ticket_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return ticket_service.delete_ticket(db, ticket_id, settings)
