# app/attachment/schemas.py
from pydantic import BaseModel, ConfigDict, Field

class AttachmentOut(BaseModel):
    # stored records use camelCase keys and may predate some fields
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    ticket_id: int | str | None = Field(default=None, alias="ticketId")
    filename: str | None = None
    size: int | None = None
    content_type: str | None = Field(default=None, alias="contentType")
    file_key: str | None = Field(default=None, alias="fileKey")
    url: str | None = None
    created_at: str | None = None

class AttachmentDeleted(BaseModel):
    message: str
    id: str
