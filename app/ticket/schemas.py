# app/ticket/schemas.py
from typing import Literal, get_args

from pydantic import BaseModel, Field

Category = Literal["Monthly Financials", "Audit", "Journal Entry", "Error", "Payroll", "General"]
Priority = Literal["Low", "Medium", "High"]
Status = Literal["Open", "In Progress", "Resolved"]

CATEGORIES = get_args(Category)
PRIORITIES = get_args(Priority)
STATUSES = get_args(Status)


class TicketBase(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)

class TicketCreate(TicketBase):
    category: Category
    priority: Priority | None = None
    status: Status | None = None
    created_at: str | None = None

class TicketUpdate(BaseModel):
    status: Status | None = None
    priority: Priority | None = None

# stored records are read leniently; missing fields come back as null
class TicketOut(BaseModel):
    id: int | str | None = None
    title: str | None = None
    category: str | None = None
    priority: str | None = None
    description: str | None = None
    status: str | None = None
    created_at: str | None = None
