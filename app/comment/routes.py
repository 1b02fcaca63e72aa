# app/comment/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.comment.schemas import CommentCreate, CommentOut
from app.comment.services import CommentRepository
router = APIRouter(prefix="/tickets/{ticket_id}/comments", tags=["Comments"])


def get_repository(db: Session = Depends(get_db)) -> CommentRepository:
    return CommentRepository(db)


@router.get("", response_model=list[CommentOut])
def list_all(ticket_id: int, repo: CommentRepository = Depends(get_repository)):
    return repo.list(ticket_id)


@router.post("", response_model=CommentOut, status_code=201)
def create(ticket_id: int, comment: CommentCreate, repo: CommentRepository = Depends(get_repository)):
    return repo.create(ticket_id, comment.content, comment.created_at)
