# app/comment/schemas.py
from pydantic import BaseModel, Field

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    created_at: str | None = None

class CommentOut(BaseModel):
    id: int | str | None = None
    content: str | None = None
    created_at: str | None = None
